"""Port interfaces for CMS sync operations.

Ports define the contracts between the use cases and the infrastructure.
These are abstract base classes that adapters must implement.

Following the Hexagonal Architecture (Ports and Adapters) pattern:
- Ports are interfaces defined in the domain layer
- Adapters implement these ports in the adapters layer
- Use cases depend only on ports, not concrete implementations
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any

from .entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceProduct,
    SourceVariant,
)


class ICMSContentAPI(ABC):
    """Port for CMS content operations, addressed by entity type.

    Implementations translate entity types to CMS collection names and
    perform exactly one HTTP call per method.
    """

    @abstractmethod
    async def find(
        self,
        entity_type: EntityType,
        filters: dict[str, Any],
        *,
        fields: list[str] | None = None,
        populate: Any = None,
        status: str | None = None,
        locale: str | None = None,
    ) -> list[dict[str, Any]]:
        """List entries matching ``filters``.

        Returns:
            Raw CMS entries (empty list if none)
        """
        ...

    @abstractmethod
    async def create(self, entity_type: EntityType, data: dict[str, Any]) -> dict[str, Any]:
        """Create an entry; the result carries its ``documentId``."""
        ...

    @abstractmethod
    async def update(
        self,
        entity_type: EntityType,
        document_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        """Update the entry identified by ``document_id``."""
        ...

    @abstractmethod
    async def delete(self, entity_type: EntityType, document_id: str) -> None:
        """Delete the entry identified by ``document_id``."""
        ...

    @abstractmethod
    async def get_single(
        self,
        content_type: str,
        *,
        locale: str | None = None,
        populate: Any = None,
    ) -> dict[str, Any] | None:
        """Fetch a single-type document (header, footer)."""
        ...


class IFieldMapper(ABC):
    """Port for mapping source entities to CMS payloads and back."""

    @abstractmethod
    def product_payload(self, product: SourceProduct, *, create: bool) -> dict[str, Any]:
        ...

    @abstractmethod
    def variant_payload(
        self,
        variant: SourceVariant,
        *,
        create: bool,
        product_document_id: str | None = None,
    ) -> dict[str, Any]:
        ...

    @abstractmethod
    def collection_payload(self, collection: SourceCollection, *, create: bool) -> dict[str, Any]:
        ...

    @abstractmethod
    def category_payload(self, category: SourceCategory, *, create: bool) -> dict[str, Any]:
        ...

    @abstractmethod
    def map_entry(self, entity_type: EntityType, entry: dict[str, Any]) -> dict[str, Any]:
        """Rename the CMS system-id field back to the source key name."""
        ...


class ICommerceRepository(ABC):
    """Port for reading commerce entities and writing sync metadata back.

    The commerce backend owns these entities; the only write this service
    performs is merging ``cms_id`` / ``cms_synced_at`` into metadata.
    """

    @abstractmethod
    async def get_products(self, ids: list[str]) -> list[SourceProduct]:
        """Fetch products (with variants) by id. Missing ids are omitted."""
        ...

    @abstractmethod
    async def get_variants(self, ids: list[str]) -> list[SourceVariant]:
        ...

    @abstractmethod
    async def get_collections(self, ids: list[str]) -> list[SourceCollection]:
        ...

    @abstractmethod
    async def get_categories(self, ids: list[str]) -> list[SourceCategory]:
        ...

    @abstractmethod
    async def list_ids(
        self,
        entity_type: EntityType,
        offset: int,
        limit: int,
    ) -> tuple[list[str], int]:
        """Page through entity ids in a stable order.

        Returns:
            Tuple of (ids in this page, total count)
        """
        ...

    @abstractmethod
    async def get_record(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Fetch one entity as a plain dict restricted to ``fields``."""
        ...

    @abstractmethod
    async def merge_metadata(
        self,
        entity_type: EntityType,
        entity_id: str,
        metadata: dict[str, Any],
    ) -> None:
        """Merge keys into the entity's metadata, keeping other keys."""
        ...

    @abstractmethod
    async def remove_metadata_keys(
        self,
        entity_type: EntityType,
        entity_id: str,
        keys: list[str],
    ) -> None:
        """Drop ``keys`` from the entity's metadata; absent keys are ignored."""
        ...


EventHandler = Callable[[dict[str, Any]], Awaitable[Any]]


class IEventBus(ABC):
    """Port for emitting and subscribing to named domain events."""

    @abstractmethod
    def subscribe(self, name: str, handler: EventHandler) -> None:
        ...

    @abstractmethod
    async def emit(self, name: str, data: dict[str, Any] | None = None) -> None:
        """Publish an event. Delivery to subscribers is asynchronous."""
        ...
