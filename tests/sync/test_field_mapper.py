"""Tests for the CMSFieldMapper adapter."""

from cms_sync.sync.adapters.field_mapper import CMSFieldMapper
from cms_sync.sync.domain.entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceProduct,
    SourceVariant,
)


class TestPayloads:
    """Test create/update payload mapping."""

    def test_product_create(self):
        payload = CMSFieldMapper().product_payload(
            SourceProduct(id="p1", title="Shirt", handle="shirt", type_value="Apparel"),
            create=True,
        )
        assert payload == {"systemId": "p1", "title": "Shirt", "handle": "shirt", "productType": "Apparel"}

    def test_product_update_has_no_system_id(self):
        payload = CMSFieldMapper().product_payload(SourceProduct(id="p1", title="Shirt"), create=False)
        assert payload == {"title": "Shirt", "handle": "", "productType": ""}

    def test_custom_system_id_key(self):
        payload = CMSFieldMapper("medusaId").collection_payload(
            SourceCollection(id="c1", title="Summer", handle="summer"), create=True
        )
        assert payload == {"medusaId": "c1", "title": "Summer", "handle": "summer"}

    def test_variant_with_and_without_relation(self):
        mapper = CMSFieldMapper()
        variant = SourceVariant(id="v1", title="Small", sku=None)

        assert mapper.variant_payload(variant, create=False) == {"title": "Small", "sku": ""}
        assert mapper.variant_payload(variant, create=True, product_document_id="d1") == {
            "systemId": "v1",
            "title": "Small",
            "sku": "",
            "product": "d1",
        }

    def test_category_title_from_name(self):
        payload = CMSFieldMapper().category_payload(
            SourceCategory(id="cat1", name="Shoes", handle="shoes"), create=False
        )
        assert payload == {"title": "Shoes", "handle": "shoes"}


class TestMapEntry:
    """Test renaming the system id back to the source key."""

    def test_renames_per_entity_type(self):
        mapper = CMSFieldMapper()
        entry = {"documentId": "d1", "systemId": "x1", "title": "T"}

        assert mapper.map_entry(EntityType.PRODUCT, entry) == {"documentId": "d1", "title": "T", "productId": "x1"}
        assert mapper.map_entry(EntityType.CATEGORY, entry)["categoryId"] == "x1"
        assert mapper.map_entry(EntityType.VARIANT, entry)["variantId"] == "x1"
        assert entry["systemId"] == "x1"
