"""PostgreSQL repository adapter for the commerce backend's catalog tables.

This adapter implements ICommerceRepository against the commerce database
(product, product_type, product_variant, product_collection,
product_category). Reads skip soft-deleted rows. Writes only touch the
JSONB ``metadata`` column, merging or removing the sync keys while
preserving keys owned by others.
"""

import json
import logging
from typing import TYPE_CHECKING, Any

from ..domain.entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceProduct,
    SourceVariant,
)
from ..domain.ports import ICommerceRepository

if TYPE_CHECKING:
    import asyncpg

logger = logging.getLogger(__name__)

TABLES = {
    EntityType.PRODUCT: "product",
    EntityType.VARIANT: "product_variant",
    EntityType.COLLECTION: "product_collection",
    EntityType.CATEGORY: "product_category",
}

# Columns a storefront request may select, per table
READABLE_COLUMNS = {
    EntityType.PRODUCT: (
        "id", "title", "subtitle", "handle", "description", "status",
        "thumbnail", "collection_id", "type_id", "metadata",
        "created_at", "updated_at",
    ),
    EntityType.VARIANT: (
        "id", "title", "sku", "barcode", "product_id", "metadata",
        "created_at", "updated_at",
    ),
    EntityType.COLLECTION: (
        "id", "title", "handle", "metadata", "created_at", "updated_at",
    ),
    EntityType.CATEGORY: (
        "id", "name", "handle", "description", "parent_category_id",
        "is_active", "metadata", "created_at", "updated_at",
    ),
}


def _load_metadata(value: Any) -> dict[str, Any]:
    """asyncpg returns jsonb as text unless a codec is registered."""
    if value is None:
        return {}
    if isinstance(value, str):
        return json.loads(value) if value else {}
    return dict(value)


class PostgresCommerceRepository(ICommerceRepository):
    """PostgreSQL implementation of ICommerceRepository."""

    def __init__(self, pool: "asyncpg.Pool"):
        """Initialize the repository.

        Args:
            pool: asyncpg connection pool for the commerce database
        """
        self.pool = pool

    async def get_products(self, ids: list[str]) -> list[SourceProduct]:
        if not ids:
            return []

        async with self.pool.acquire() as conn:
            product_rows = await conn.fetch(
                """
                SELECT p.id, p.title, p.handle, p.status, p.metadata,
                       pt.value AS type_value
                FROM product p
                LEFT JOIN product_type pt ON pt.id = p.type_id
                WHERE p.id = ANY($1::text[]) AND p.deleted_at IS NULL
                ORDER BY p.created_at, p.id
                """,
                ids,
            )
            variant_rows = await conn.fetch(
                """
                SELECT id, title, sku, product_id, metadata
                FROM product_variant
                WHERE product_id = ANY($1::text[]) AND deleted_at IS NULL
                ORDER BY created_at, id
                """,
                [row["id"] for row in product_rows],
            )

        variants_by_product: dict[str, list[SourceVariant]] = {}
        for row in variant_rows:
            variants_by_product.setdefault(row["product_id"], []).append(
                self._row_to_variant(row)
            )

        return [
            SourceProduct(
                id=row["id"],
                title=row["title"],
                handle=row["handle"],
                type_value=row["type_value"],
                status=row["status"],
                metadata=_load_metadata(row["metadata"]),
                variants=variants_by_product.get(row["id"], []),
            )
            for row in product_rows
        ]

    async def get_variants(self, ids: list[str]) -> list[SourceVariant]:
        if not ids:
            return []

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, title, sku, product_id, metadata
                FROM product_variant
                WHERE id = ANY($1::text[]) AND deleted_at IS NULL
                ORDER BY created_at, id
                """,
                ids,
            )
        return [self._row_to_variant(row) for row in rows]

    async def get_collections(self, ids: list[str]) -> list[SourceCollection]:
        if not ids:
            return []

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, title, handle, metadata
                FROM product_collection
                WHERE id = ANY($1::text[]) AND deleted_at IS NULL
                ORDER BY created_at, id
                """,
                ids,
            )
        return [
            SourceCollection(
                id=row["id"],
                title=row["title"],
                handle=row["handle"],
                metadata=_load_metadata(row["metadata"]),
            )
            for row in rows
        ]

    async def get_categories(self, ids: list[str]) -> list[SourceCategory]:
        if not ids:
            return []

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                """
                SELECT id, name, handle, parent_category_id, metadata
                FROM product_category
                WHERE id = ANY($1::text[]) AND deleted_at IS NULL
                ORDER BY created_at, id
                """,
                ids,
            )
        return [
            SourceCategory(
                id=row["id"],
                name=row["name"],
                handle=row["handle"],
                parent_category_id=row["parent_category_id"],
                metadata=_load_metadata(row["metadata"]),
            )
            for row in rows
        ]

    async def list_ids(
        self,
        entity_type: EntityType,
        offset: int,
        limit: int,
    ) -> tuple[list[str], int]:
        table = TABLES[entity_type]

        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"""
                SELECT id FROM {table}
                WHERE deleted_at IS NULL
                ORDER BY created_at, id
                LIMIT $1 OFFSET $2
                """,
                limit,
                offset,
            )
            count = await conn.fetchval(
                f"SELECT COUNT(*) FROM {table} WHERE deleted_at IS NULL"
            )

        return [row["id"] for row in rows], int(count or 0)

    async def get_record(
        self,
        entity_type: EntityType,
        entity_id: str,
        fields: list[str] | None = None,
    ) -> dict[str, Any] | None:
        """Fetch one row restricted to known columns.

        Unknown field names are dropped; ``id`` is always selected.
        """
        allowed = READABLE_COLUMNS[entity_type]
        requested = [f for f in (fields or []) if f]
        columns = [c for c in requested if c in allowed] or list(allowed)
        dropped = set(requested) - set(columns)
        if dropped:
            logger.debug(f"Ignoring unknown {entity_type.value} fields: {sorted(dropped)}")
        if "id" not in columns:
            columns.insert(0, "id")

        table = TABLES[entity_type]
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"SELECT {', '.join(columns)} FROM {table} "
                "WHERE id = $1 AND deleted_at IS NULL",
                entity_id,
            )

        if row is None:
            return None

        record = dict(row)
        if "metadata" in record:
            record["metadata"] = _load_metadata(record["metadata"])
        return record

    async def merge_metadata(
        self,
        entity_type: EntityType,
        entity_id: str,
        metadata: dict[str, Any],
    ) -> None:
        table = TABLES[entity_type]

        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                UPDATE {table}
                SET metadata = COALESCE(metadata, '{{}}'::jsonb) || $2::jsonb,
                    updated_at = NOW()
                WHERE id = $1
                """,
                entity_id,
                json.dumps(metadata),
            )

    async def remove_metadata_keys(
        self,
        entity_type: EntityType,
        entity_id: str,
        keys: list[str],
    ) -> None:
        table = TABLES[entity_type]

        async with self.pool.acquire() as conn:
            await conn.execute(
                f"""
                UPDATE {table}
                SET metadata = COALESCE(metadata, '{{}}'::jsonb) - $2::text[],
                    updated_at = NOW()
                WHERE id = $1
                """,
                entity_id,
                list(keys),
            )

    @staticmethod
    def _row_to_variant(row) -> SourceVariant:
        return SourceVariant(
            id=row["id"],
            title=row["title"],
            sku=row["sku"],
            product_id=row["product_id"],
            metadata=_load_metadata(row["metadata"]),
        )
