"""Tests for the PostgresCommerceRepository adapter.

The asyncpg pool is mocked; rows are plain dicts, which support the same
``row["column"]`` access as asyncpg Records.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from cms_sync.sync.adapters.postgres_commerce_repo import PostgresCommerceRepository
from cms_sync.sync.domain.entities import EntityType


@pytest.fixture
def mock_db_pool():
    """Create a mock database connection pool."""
    pool = MagicMock()
    conn = AsyncMock()

    pool.acquire = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=None)

    return pool, conn


class TestReads:
    """Test mapping rows into source entities."""

    @pytest.mark.asyncio
    async def test_products_include_variants(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetch = AsyncMock(side_effect=[
            [
                {"id": "p1", "title": "Shirt", "handle": "shirt", "status": "published",
                 "metadata": '{"cms_id": "d1"}', "type_value": "Apparel"},
                {"id": "p2", "title": "Hat", "handle": None, "status": "draft",
                 "metadata": None, "type_value": None},
            ],
            [
                {"id": "v1", "title": "S", "sku": "SH-S", "product_id": "p1", "metadata": None},
                {"id": "v2", "title": "M", "sku": "SH-M", "product_id": "p1", "metadata": "{}"},
            ],
        ])

        products = await PostgresCommerceRepository(pool).get_products(["p1", "p2"])

        assert [p.id for p in products] == ["p1", "p2"]
        assert products[0].type_value == "Apparel"
        assert products[0].metadata == {"cms_id": "d1"}
        assert [v.id for v in products[0].variants] == ["v1", "v2"]
        assert products[1].variants == []
        assert products[1].metadata == {}

        variant_query, variant_ids = conn.fetch.call_args_list[1].args
        assert "product_id = ANY" in variant_query
        assert variant_ids == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_empty_ids_skip_the_database(self, mock_db_pool):
        pool, conn = mock_db_pool
        repo = PostgresCommerceRepository(pool)

        assert await repo.get_products([]) == []
        assert await repo.get_categories([]) == []
        pool.acquire.assert_not_called()

    @pytest.mark.asyncio
    async def test_categories(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetch = AsyncMock(return_value=[
            {"id": "cat1", "name": "Shoes", "handle": "shoes",
             "parent_category_id": "cat0", "metadata": {"a": 1}},
        ])

        categories = await PostgresCommerceRepository(pool).get_categories(["cat1"])

        assert categories[0].name == "Shoes"
        assert categories[0].parent_category_id == "cat0"
        assert categories[0].metadata == {"a": 1}

    @pytest.mark.asyncio
    async def test_list_ids_pages_with_count(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetch = AsyncMock(return_value=[{"id": "c1"}, {"id": "c2"}])
        conn.fetchval = AsyncMock(return_value=150)

        ids, total = await PostgresCommerceRepository(pool).list_ids(EntityType.COLLECTION, 100, 100)

        assert ids == ["c1", "c2"]
        assert total == 150
        query, limit, offset = conn.fetch.call_args.args
        assert "FROM product_collection" in query
        assert "ORDER BY created_at, id" in query
        assert (limit, offset) == (100, 100)


class TestGetRecord:
    """Test field selection for storefront reads."""

    @pytest.mark.asyncio
    async def test_unknown_fields_are_dropped(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetchrow = AsyncMock(return_value={"id": "p1", "title": "Shirt"})

        record = await PostgresCommerceRepository(pool).get_record(
            EntityType.PRODUCT, "p1", ["title", "password; DROP TABLE product"]
        )

        assert record == {"id": "p1", "title": "Shirt"}
        query = conn.fetchrow.call_args.args[0]
        assert query.startswith("SELECT id, title FROM product ")
        assert "DROP" not in query

    @pytest.mark.asyncio
    async def test_no_fields_selects_all_readable_columns(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetchrow = AsyncMock(return_value={"id": "c1", "metadata": '{"x": 1}'})

        record = await PostgresCommerceRepository(pool).get_record(EntityType.COLLECTION, "c1")

        assert record["metadata"] == {"x": 1}
        query = conn.fetchrow.call_args.args[0]
        assert "handle" in query and "metadata" in query

    @pytest.mark.asyncio
    async def test_missing_row_returns_none(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.fetchrow = AsyncMock(return_value=None)

        assert await PostgresCommerceRepository(pool).get_record(EntityType.CATEGORY, "x") is None


class TestMergeMetadata:
    """Test metadata write-back."""

    @pytest.mark.asyncio
    async def test_jsonb_merge_keeps_other_keys(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.execute = AsyncMock()

        await PostgresCommerceRepository(pool).merge_metadata(
            EntityType.VARIANT, "v1", {"cms_id": "d9", "cms_synced_at": 1700000000000}
        )

        query, entity_id, payload = conn.execute.call_args.args
        assert "UPDATE product_variant" in query
        assert "COALESCE(metadata, '{}'::jsonb) || $2::jsonb" in query
        assert entity_id == "v1"
        assert json.loads(payload) == {"cms_id": "d9", "cms_synced_at": 1700000000000}

    @pytest.mark.asyncio
    async def test_remove_keys_drops_them_from_metadata(self, mock_db_pool):
        pool, conn = mock_db_pool
        conn.execute = AsyncMock()

        await PostgresCommerceRepository(pool).remove_metadata_keys(
            EntityType.CATEGORY, "cat1", ["cms_id", "cms_synced_at"]
        )

        query, entity_id, keys = conn.execute.call_args.args
        assert "UPDATE product_category" in query
        assert "COALESCE(metadata, '{}'::jsonb) - $2::text[]" in query
        assert entity_id == "cat1"
        assert keys == ["cms_id", "cms_synced_at"]
