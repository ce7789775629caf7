"""Event dispatcher - Maps domain events to sync use cases.

Entity events carry only ``{"id": ...}``; the handler re-reads the entity
and upserts or deletes it in the CMS. Resync events page through a whole
entity type. Every handler logs its outcome and returns the result so that
synchronous callers (the admin events endpoint) can report it.

    product.created / .updated              -> upsert product (with variants)
    product.deleted                         -> delete product (and variants)
    product-variant.created / .updated      -> upsert variant
    product-variant.deleted                 -> delete variant
    product-collection.created / .updated   -> upsert collection
    product-collection.deleted              -> delete collection
    product-category.created / .updated     -> upsert category
    product-category.deleted                -> delete category
    cms-{products,collections,categories}.sync -> full resync of that type
    cms.sync                                -> full resync of all three
"""

import functools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Optional, Union

from ..sync.domain.entities import EntityType, StepResult, SyncEvent, SyncResult
from ..sync.domain.ports import IEventBus
from ..sync.use_cases.resync import FullResyncUseCase
from ..sync.use_cases.sync_entities import SyncEntitiesUseCase
from . import names

logger = logging.getLogger(__name__)

HandlerResult = Union[StepResult, SyncResult, list[SyncResult]]

UPSERT_EVENTS = {
    names.PRODUCT_CREATED: EntityType.PRODUCT,
    names.PRODUCT_UPDATED: EntityType.PRODUCT,
    names.VARIANT_CREATED: EntityType.VARIANT,
    names.VARIANT_UPDATED: EntityType.VARIANT,
    names.COLLECTION_CREATED: EntityType.COLLECTION,
    names.COLLECTION_UPDATED: EntityType.COLLECTION,
    names.CATEGORY_CREATED: EntityType.CATEGORY,
    names.CATEGORY_UPDATED: EntityType.CATEGORY,
}

DELETE_EVENTS = {
    names.PRODUCT_DELETED: EntityType.PRODUCT,
    names.VARIANT_DELETED: EntityType.VARIANT,
    names.COLLECTION_DELETED: EntityType.COLLECTION,
    names.CATEGORY_DELETED: EntityType.CATEGORY,
}

RESYNC_EVENTS = {
    names.PRODUCTS_SYNC: EntityType.PRODUCT,
    names.COLLECTIONS_SYNC: EntityType.COLLECTION,
    names.CATEGORIES_SYNC: EntityType.CATEGORY,
}


class UnknownEventError(ValueError):
    """Raised for an event name with no handler."""


class EventDispatcher:
    """Routes named events to the sync use cases.

    Example:
        dispatcher = EventDispatcher(sync_entities, resync)
        dispatcher.register(bus)
        result = await dispatcher.handle("product.updated", {"id": "prod_1"})
    """

    def __init__(
        self,
        sync_entities: SyncEntitiesUseCase,
        resync: FullResyncUseCase,
    ):
        self.sync_entities = sync_entities
        self.resync = resync
        self._handlers: dict[str, Callable[[SyncEvent], Awaitable[HandlerResult]]] = {}

        for name in UPSERT_EVENTS:
            self._handlers[name] = self._on_upsert
        for name in DELETE_EVENTS:
            self._handlers[name] = self._on_delete
        for name in RESYNC_EVENTS:
            self._handlers[name] = self._on_resync
        self._handlers[names.ALL_SYNC] = self._on_resync_all

    @property
    def event_names(self) -> list[str]:
        return list(self._handlers)

    def register(self, bus: IEventBus) -> None:
        """Subscribe a handler for every known event on ``bus``."""
        for name in self._handlers:
            bus.subscribe(name, functools.partial(self.handle, name))
        logger.info(f"Registered {len(self._handlers)} CMS sync event handlers")

    async def handle(self, name: str, data: Optional[dict[str, Any]] = None) -> HandlerResult:
        """Run the handler for event ``name``.

        Raises:
            UnknownEventError: If no handler exists for ``name``
            ValueError: If an entity event carries no id
        """
        handler = self._handlers.get(name)
        if handler is None:
            raise UnknownEventError(f"No handler for event '{name}'")
        return await handler(SyncEvent.from_payload(name, data))

    @staticmethod
    def _require_id(event: SyncEvent) -> str:
        if not event.entity_id:
            raise ValueError(f"Event '{event.name}' has no entity id")
        return event.entity_id

    async def _on_upsert(self, event: SyncEvent) -> StepResult:
        entity_type = UPSERT_EVENTS[event.name]
        entity_id = self._require_id(event)

        result = await self.sync_entities.upsert(entity_type, [entity_id])
        self._log_step(event, result)
        return result

    async def _on_delete(self, event: SyncEvent) -> StepResult:
        entity_type = DELETE_EVENTS[event.name]
        entity_id = self._require_id(event)

        result = await self.sync_entities.delete(entity_type, [entity_id])
        self._log_step(event, result)
        return result

    async def _on_resync(self, event: SyncEvent) -> SyncResult:
        return await self.resync.execute(RESYNC_EVENTS[event.name])

    async def _on_resync_all(self, event: SyncEvent) -> list[SyncResult]:
        results = await self.resync.execute_all()
        failed = [r.entity_type.value for r in results if not r.success]
        if failed:
            logger.warning(f"Full CMS resync finished with errors in: {', '.join(failed)}")
        return results

    @staticmethod
    def _log_step(event: SyncEvent, result: StepResult) -> None:
        label = result.entity_type.value.capitalize()
        if result.success:
            logger.info(f"{label} {event.entity_id} synced to CMS ({event.name})")
        else:
            logger.error(
                f"{label} {event.entity_id} failed to sync to CMS ({event.name}): "
                f"{'; '.join(result.errors)}"
            )
