"""Read Content Use Case - Merge CMS content into a commerce entity.

Workflow:
1. Fetch the source record by id with the requested fields
2. Fetch the linked CMS entry (by system id) with locale / populate
3. Return the record with the entry under ``cms`` (None when not synced)
"""

import logging
from typing import Any, Optional

from ...api.exceptions import SourceNotFoundError
from ..domain.entities import EntityType
from ..domain.ports import ICommerceRepository
from .reconcile import ReconciliationService

logger = logging.getLogger(__name__)


class ReadContentUseCase:
    """Storefront read path: source record plus its CMS entry."""

    def __init__(
        self,
        repository: ICommerceRepository,
        reconciler: ReconciliationService,
    ):
        self.repo = repository
        self.reconciler = reconciler

    async def execute(
        self,
        entity_type: EntityType,
        entity_id: str,
        *,
        fields: Optional[list[str]] = None,
        locale: Optional[str] = None,
        populate: Any = None,
    ) -> dict[str, Any]:
        """Return the source record with a ``cms`` key.

        Raises:
            SourceNotFoundError: If the commerce backend has no such entity
            CMSSyncError: If the CMS lookup fails
        """
        record = await self.repo.get_record(entity_type, entity_id, fields)
        if record is None:
            raise SourceNotFoundError(entity_type.value, entity_id)

        entries = await self.reconciler.list(
            entity_type,
            [entity_id],
            locale=locale,
            populate=populate,
        )
        record["cms"] = entries[0] if entries else None

        if record["cms"] is None:
            logger.debug(f"{entity_type.value} {entity_id} has no CMS entry")
        return record
