"""Tests for the sync domain entities."""

from datetime import datetime, timedelta, timezone

from cms_sync.sync.domain.entities import (
    EntityType,
    StepResult,
    SyncEvent,
    SyncResult,
    UpsertResult,
)


class TestEntityType:
    """Test collection and source-key naming per entity type."""

    def test_collections(self):
        assert EntityType.PRODUCT.collection == "products"
        assert EntityType.VARIANT.collection == "product-variants"
        assert EntityType.COLLECTION.collection == "collections"
        assert EntityType.CATEGORY.collection == "categories"

    def test_source_keys(self):
        assert EntityType.PRODUCT.source_key == "productId"
        assert EntityType.VARIANT.source_key == "variantId"
        assert EntityType.COLLECTION.source_key == "collectionId"
        assert EntityType.CATEGORY.source_key == "categoryId"

    def test_is_a_string(self):
        assert EntityType("category") is EntityType.CATEGORY
        assert EntityType.CATEGORY == "category"


class TestSyncEvent:
    """Test building events from transport payloads."""

    def test_from_payload(self):
        event = SyncEvent.from_payload("product.updated", {"id": "p1", "extra": True})
        assert event == SyncEvent(name="product.updated", entity_id="p1")

    def test_payload_without_id(self):
        assert SyncEvent.from_payload("cms.sync", None).entity_id is None
        assert SyncEvent.from_payload("cms.sync", {}).entity_id is None


class TestResults:
    """Test result serialization."""

    def test_upsert_result(self):
        result = UpsertResult(EntityType.COLLECTION, "c1", "d7", created=True)
        assert result.to_dict() == {"documentId": "d7", "collectionId": "c1"}

    def test_step_result(self):
        result = StepResult(
            entity_type=EntityType.PRODUCT,
            success=False,
            synced=[UpsertResult(EntityType.PRODUCT, "p1", "d1")],
            errors=["boom"],
        )
        assert result.permanent_failure is True
        assert result.to_dict()["synced"] == [{"documentId": "d1", "productId": "p1"}]
        assert result.to_dict()["entity_type"] == "product"

    def test_sync_result_duration(self):
        started = datetime(2024, 1, 1, tzinfo=timezone.utc)
        result = SyncResult(
            entity_type=EntityType.CATEGORY,
            success=True,
            total=1,
            upserted=1,
            errors=0,
            pages=1,
            synced_at=started,
            completed_at=started + timedelta(seconds=2.5),
        )
        assert result.duration_seconds == 2.5
        assert result.to_dict()["synced_at"] == "2024-01-01T00:00:00+00:00"
