"""Sync module - Clean Architecture implementation of commerce-to-CMS sync.

Architecture:
    domain/     - Pure domain entities and port interfaces
    use_cases/  - Reconciliation, sync steps and full resync
    adapters/   - Infrastructure implementations (PostgreSQL, CMS REST API)
"""

from .domain.entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceProduct,
    SourceVariant,
    StepResult,
    SyncEvent,
    SyncResult,
    UpsertResult,
)
from .domain.ports import (
    ICMSContentAPI,
    ICommerceRepository,
    IEventBus,
    IFieldMapper,
)

__all__ = [
    # Entities
    "EntityType",
    "SourceCategory",
    "SourceCollection",
    "SourceProduct",
    "SourceVariant",
    "SyncEvent",
    # Results
    "StepResult",
    "SyncResult",
    "UpsertResult",
    # Ports
    "ICMSContentAPI",
    "ICommerceRepository",
    "IEventBus",
    "IFieldMapper",
]
