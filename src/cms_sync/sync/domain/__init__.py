"""Domain layer - Pure domain entities and port interfaces.

This layer contains:
- Entities: Pure data structures representing commerce objects and sync outcomes
- Ports: Abstract interfaces defining contracts for adapters

No infrastructure dependencies allowed in this layer.
"""

from .entities import (
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
from .ports import (
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
