"""Use cases layer - Business logic orchestration for CMS sync operations.

This layer contains the classes that drive a sync:
- Reconcile one entity with the CMS (find, then create or update / delete)
- Run a batch as a step that records cms_id on the source or compensates
- Fetch entities by id from the commerce backend (via ICommerceRepository)
- Page through a whole entity type for a full resync
- Merge the CMS entry into a source record for storefront reads

Use cases depend only on ports, not concrete implementations.
"""

from .read_content import ReadContentUseCase
from .reconcile import ReconciliationService
from .resync import FullResyncUseCase
from .steps import DeleteEntitiesStep, UpsertEntitiesStep
from .sync_entities import SyncEntitiesUseCase

__all__ = [
    "DeleteEntitiesStep",
    "FullResyncUseCase",
    "ReadContentUseCase",
    "ReconciliationService",
    "SyncEntitiesUseCase",
    "UpsertEntitiesStep",
]
