"""Field mapper adapter for transforming source entities into CMS payloads.

This adapter implements IFieldMapper and owns the field mapping between the
commerce backend and the CMS content model:

    Product     -> title, handle, productType
    Variant     -> title, sku, product (relation to the product entry)
    Collection  -> title, handle
    Category    -> title (from name), handle

Empty or missing source values are sent as "" so required-field validation
in the CMS never rejects a sync. The system id is only sent on create; it
is immutable afterwards.
"""

from typing import Any

from ..domain.entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceProduct,
    SourceVariant,
)
from ..domain.ports import IFieldMapper


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class CMSFieldMapper(IFieldMapper):
    """Maps commerce entities to CMS create/update payloads.

    Attributes:
        system_id_key: CMS field that stores the commerce id (e.g. "systemId")
    """

    def __init__(self, system_id_key: str = "systemId"):
        self.system_id_key = system_id_key

    def _with_system_id(self, payload: dict[str, Any], source_id: str, create: bool) -> dict[str, Any]:
        if create:
            return {self.system_id_key: source_id, **payload}
        return payload

    def product_payload(self, product: SourceProduct, *, create: bool) -> dict[str, Any]:
        payload = {
            "title": _text(product.title),
            "handle": _text(product.handle),
            "productType": _text(product.type_value),
        }
        return self._with_system_id(payload, product.id, create)

    def variant_payload(
        self,
        variant: SourceVariant,
        *,
        create: bool,
        product_document_id: str | None = None,
    ) -> dict[str, Any]:
        """Build a variant payload.

        ``product_document_id`` is the parent's CMS key. Callers pass it on
        create and on updates where the linked parent differs; otherwise the
        relation is left untouched.
        """
        payload: dict[str, Any] = {
            "title": _text(variant.title),
            "sku": _text(variant.sku),
        }
        if product_document_id:
            payload["product"] = product_document_id
        return self._with_system_id(payload, variant.id, create)

    def collection_payload(self, collection: SourceCollection, *, create: bool) -> dict[str, Any]:
        payload = {
            "title": _text(collection.title),
            "handle": _text(collection.handle),
        }
        return self._with_system_id(payload, collection.id, create)

    def category_payload(self, category: SourceCategory, *, create: bool) -> dict[str, Any]:
        payload = {
            "title": _text(category.name),
            "handle": _text(category.handle),
        }
        return self._with_system_id(payload, category.id, create)

    def map_entry(self, entity_type: EntityType, entry: dict[str, Any]) -> dict[str, Any]:
        """Return a copy of ``entry`` with the system id under the source key.

        Example:
            {"documentId": "d1", "systemId": "p1"}
                -> {"documentId": "d1", "productId": "p1"}
        """
        mapped = {k: v for k, v in entry.items() if k != self.system_id_key}
        mapped[entity_type.source_key] = entry.get(self.system_id_key)
        return mapped
