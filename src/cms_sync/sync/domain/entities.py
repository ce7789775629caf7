"""Domain entities for CMS sync operations.

These are pure data structures with no infrastructure dependencies.
They represent commerce entities as read from the source system and the
outcomes of syncing them into the CMS.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class EntityType(str, Enum):
    """Commerce entity kinds mirrored into the CMS."""

    PRODUCT = "product"
    VARIANT = "variant"
    COLLECTION = "collection"
    CATEGORY = "category"

    @property
    def collection(self) -> str:
        """CMS collection name holding entries of this type."""
        return _CMS_COLLECTIONS[self]

    @property
    def source_key(self) -> str:
        """Name of the source-side id when entries are handed back to callers."""
        return _SOURCE_KEYS[self]


_CMS_COLLECTIONS = {
    EntityType.PRODUCT: "products",
    EntityType.VARIANT: "product-variants",
    EntityType.COLLECTION: "collections",
    EntityType.CATEGORY: "categories",
}

_SOURCE_KEYS = {
    EntityType.PRODUCT: "productId",
    EntityType.VARIANT: "variantId",
    EntityType.COLLECTION: "collectionId",
    EntityType.CATEGORY: "categoryId",
}


# ============================================
# Source Entities
# ============================================


@dataclass
class SourceVariant:
    """A product variant as stored by the commerce backend."""

    id: str
    title: str | None = None
    sku: str | None = None
    product_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SourceProduct:
    """A product as stored by the commerce backend, with its variants."""

    id: str
    title: str | None = None
    handle: str | None = None
    type_value: str | None = None  # product type, e.g. "Shirts"
    status: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    variants: list[SourceVariant] = field(default_factory=list)


@dataclass
class SourceCollection:
    """A product collection as stored by the commerce backend."""

    id: str
    title: str | None = None
    handle: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SourceCategory:
    """A product category as stored by the commerce backend."""

    id: str
    name: str | None = None
    handle: str | None = None
    parent_category_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


SourceEntity = SourceProduct | SourceVariant | SourceCollection | SourceCategory


# ============================================
# Events
# ============================================


@dataclass(frozen=True)
class SyncEvent:
    """A domain event naming one entity. Carries no state beyond the id."""

    name: str
    entity_id: str | None = None

    @classmethod
    def from_payload(cls, name: str, data: dict[str, Any] | None) -> "SyncEvent":
        entity_id = (data or {}).get("id")
        return cls(name=name, entity_id=str(entity_id) if entity_id else None)


# ============================================
# Results
# ============================================


@dataclass
class UpsertResult:
    """Outcome of one successful CMS upsert."""

    entity_type: EntityType
    source_id: str
    document_id: str
    created: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "documentId": self.document_id,
            self.entity_type.source_key: self.source_id,
        }


@dataclass
class StepResult:
    """Outcome of a sync step over a batch of entities.

    A failed step is a permanent failure: the event transport is told not to
    retry. ``compensated`` lists source ids whose freshly created CMS entries
    were deleted again after the failure.
    """

    entity_type: EntityType
    success: bool
    synced: list[UpsertResult] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    compensated: list[str] = field(default_factory=list)

    @property
    def permanent_failure(self) -> bool:
        return not self.success

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type.value,
            "success": self.success,
            "synced": [r.to_dict() for r in self.synced],
            "deleted": list(self.deleted),
            "skipped": list(self.skipped),
            "errors": list(self.errors),
            "compensated": list(self.compensated),
        }


@dataclass
class SyncResult:
    """Result of a full resync of one entity type.

    Contains statistics about the sync operation and any errors encountered.
    """

    entity_type: EntityType
    success: bool
    total: int
    upserted: int
    errors: int
    pages: int
    synced_at: datetime
    error_details: list[str] = field(default_factory=list)
    completed_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> float | None:
        if self.completed_at:
            return (self.completed_at - self.synced_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "entity_type": self.entity_type.value,
            "total": self.total,
            "upserted": self.upserted,
            "errors": self.errors,
            "pages": self.pages,
            "synced_at": self.synced_at.isoformat(),
        }
