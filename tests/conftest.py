"""Shared test doubles for the CMS sync tests.

InMemoryCMS and InMemoryCommerceRepository implement the domain ports
with plain dicts, so use cases can be exercised without HTTP or a database.
"""

import dataclasses
import itertools
from typing import Any

import pytest

from cms_sync.api.exceptions import CMSRequestError
from cms_sync.sync.adapters.field_mapper import CMSFieldMapper
from cms_sync.sync.domain.entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceProduct,
    SourceVariant,
)
from cms_sync.sync.domain.ports import ICMSContentAPI, ICommerceRepository
from cms_sync.sync.use_cases.reconcile import ReconciliationService

SYSTEM_ID = "systemId"


def _matches(entry: dict[str, Any], filters: dict[str, Any]) -> bool:
    for key, condition in (filters or {}).items():
        value = entry.get(key)
        if "$eq" in condition and value != condition["$eq"]:
            return False
        if "$in" in condition and value not in condition["$in"]:
            return False
    return True


class InMemoryCMS(ICMSContentAPI):
    """Dict-backed CMS. Document ids are assigned d1, d2, ... in order.

    Every call is appended to ``calls`` as (operation, entity_type, detail)
    so tests can assert on call order. ``fail`` maps (operation,
    entity_type) to an exception raised on that call.
    """

    def __init__(self):
        self.entries: dict[EntityType, dict[str, dict[str, Any]]] = {t: {} for t in EntityType}
        self.singles: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, Any, Any]] = []
        self.fail: dict[tuple[str, Any], Exception] = {}
        self._ids = itertools.count(1)

    def _maybe_fail(self, operation: str, entity_type: Any) -> None:
        error = self.fail.get((operation, entity_type))
        if error is not None:
            raise error

    def calls_for(self, operation: str) -> list[tuple[str, Any, Any]]:
        return [c for c in self.calls if c[0] == operation]

    def seed(self, entity_type: EntityType, **data) -> str:
        document_id = f"d{next(self._ids)}"
        self.entries[entity_type][document_id] = {"documentId": document_id, **data}
        return document_id

    async def find(self, entity_type, filters, *, fields=None, populate=None, status=None, locale=None):
        self.calls.append(("find", entity_type, {"filters": filters, "populate": populate, "status": status, "locale": locale}))
        self._maybe_fail("find", entity_type)

        results = []
        for entry in self.entries[entity_type].values():
            if not _matches(entry, filters):
                continue
            if fields:
                item = {k: entry.get(k) for k in fields}
            else:
                item = dict(entry)

            if isinstance(populate, dict) and "product" in populate:
                parent = entry.get("product")
                item["product"] = {"documentId": parent} if parent else None
            if isinstance(populate, dict) and "variants" in populate:
                item["variants"] = [
                    {"documentId": v["documentId"]}
                    for v in self.entries[EntityType.VARIANT].values()
                    if v.get("product") == entry["documentId"]
                ]
            results.append(item)
        return results

    async def create(self, entity_type, data):
        self.calls.append(("create", entity_type, dict(data)))
        self._maybe_fail("create", entity_type)
        document_id = self.seed(entity_type, **data)
        return dict(self.entries[entity_type][document_id])

    async def update(self, entity_type, document_id, data):
        self.calls.append(("update", entity_type, (document_id, dict(data))))
        self._maybe_fail("update", entity_type)
        if document_id not in self.entries[entity_type]:
            raise CMSRequestError("Not Found", entity_type.collection, "update", status_code=404)
        self.entries[entity_type][document_id].update(data)
        return dict(self.entries[entity_type][document_id])

    async def delete(self, entity_type, document_id):
        self.calls.append(("delete", entity_type, document_id))
        self._maybe_fail("delete", entity_type)
        if self.entries[entity_type].pop(document_id, None) is None:
            raise CMSRequestError("Not Found", entity_type.collection, "delete", status_code=404)

    async def get_single(self, content_type, *, locale=None, populate=None):
        self.calls.append(("get_single", content_type, {"locale": locale, "populate": populate}))
        self._maybe_fail("get_single", content_type)
        return self.singles.get(content_type)

    def by_system_id(self, entity_type: EntityType, source_id: str) -> list[dict[str, Any]]:
        return [e for e in self.entries[entity_type].values() if e.get(SYSTEM_ID) == source_id]


class InMemoryCommerceRepository(ICommerceRepository):
    """Dict-backed commerce store keeping insertion order."""

    def __init__(self):
        self.products: dict[str, SourceProduct] = {}
        self.variants: dict[str, SourceVariant] = {}
        self.collections: dict[str, SourceCollection] = {}
        self.categories: dict[str, SourceCategory] = {}
        self.metadata_writes: list[tuple[EntityType, str, dict[str, Any]]] = []
        self.metadata_removals: list[tuple[EntityType, str, list[str]]] = []
        self.list_calls: list[tuple[EntityType, int, int]] = []
        self.fail_metadata: Exception | None = None

    def _store(self, entity_type: EntityType) -> dict[str, Any]:
        return {
            EntityType.PRODUCT: self.products,
            EntityType.VARIANT: self.variants,
            EntityType.COLLECTION: self.collections,
            EntityType.CATEGORY: self.categories,
        }[entity_type]

    def add_product(self, product: SourceProduct) -> SourceProduct:
        self.products[product.id] = product
        for variant in product.variants:
            variant.product_id = product.id
            self.variants[variant.id] = variant
        return product

    async def get_products(self, ids):
        return [self.products[i] for i in ids if i in self.products]

    async def get_variants(self, ids):
        return [self.variants[i] for i in ids if i in self.variants]

    async def get_collections(self, ids):
        return [self.collections[i] for i in ids if i in self.collections]

    async def get_categories(self, ids):
        return [self.categories[i] for i in ids if i in self.categories]

    async def list_ids(self, entity_type, offset, limit):
        self.list_calls.append((entity_type, offset, limit))
        ids = list(self._store(entity_type))
        return ids[offset:offset + limit], len(ids)

    async def get_record(self, entity_type, entity_id, fields=None):
        entity = self._store(entity_type).get(entity_id)
        if entity is None:
            return None
        record = {
            k: v for k, v in dataclasses.asdict(entity).items()
            if not isinstance(v, list)
        }
        if fields:
            record = {k: v for k, v in record.items() if k in fields or k == "id"}
        return record

    async def merge_metadata(self, entity_type, entity_id, metadata):
        if self.fail_metadata is not None:
            raise self.fail_metadata
        self.metadata_writes.append((entity_type, entity_id, dict(metadata)))
        entity = self._store(entity_type).get(entity_id)
        if entity is not None:
            entity.metadata = {**entity.metadata, **metadata}

    async def remove_metadata_keys(self, entity_type, entity_id, keys):
        self.metadata_removals.append((entity_type, entity_id, list(keys)))
        entity = self._store(entity_type).get(entity_id)
        if entity is not None:
            entity.metadata = {k: v for k, v in entity.metadata.items() if k not in keys}


@pytest.fixture
def cms():
    return InMemoryCMS()


@pytest.fixture
def repo():
    return InMemoryCommerceRepository()


@pytest.fixture
def reconciler(cms):
    return ReconciliationService(cms, CMSFieldMapper(SYSTEM_ID), system_id_key=SYSTEM_ID)
