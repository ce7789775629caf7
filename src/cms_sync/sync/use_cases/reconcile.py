"""Reconciliation Service - Mirrors commerce entities into the CMS.

Every write follows the same sequence per (entity type, source id):

1. Find the CMS entry whose system-id field equals the source id
   (``documentId`` only, draft status)
2. Absent: create it with the mapped display fields plus the system id
3. Present: update it with the mapped display fields only

Deletes look the entry up the same way and are a no-op when it is absent.
This service never writes to the commerce backend; the step layer records
the returned CMS key on the source entity.
"""

import logging
from collections.abc import Callable
from typing import Any, Optional

from ...api.exceptions import NotFoundLocal
from ...api.resilience import KeyedLock, gather_with_errors
from ..domain.entities import (
    EntityType,
    SourceCategory,
    SourceCollection,
    SourceEntity,
    SourceProduct,
    SourceVariant,
    UpsertResult,
)
from ..domain.ports import ICMSContentAPI, IFieldMapper

logger = logging.getLogger(__name__)

PayloadBuilder = Callable[[bool], dict[str, Any]]


class ReconciliationService:
    """Find-then-create-or-update against the CMS, keyed by source id.

    The check-then-act sequence for one key runs under a per-key lock, so
    two events for the same entity inside this process never both create.

    Example:
        service = ReconciliationService(
            cms=CMSContentAPI(client),
            mapper=CMSFieldMapper("systemId"),
        )
        result = await service.upsert_product(product)
        result.to_dict()  # {"documentId": "d1", "productId": "p1"}
    """

    def __init__(
        self,
        cms: ICMSContentAPI,
        mapper: IFieldMapper,
        system_id_key: str = "systemId",
        locks: Optional[KeyedLock] = None,
    ):
        """Initialize the service with its dependencies.

        Args:
            cms: Port for CMS content operations
            mapper: Port for building CMS payloads
            system_id_key: CMS field holding the commerce id
            locks: Shared per-key lock table (one is created if omitted)
        """
        self.cms = cms
        self.mapper = mapper
        self.system_id_key = system_id_key
        self.locks = locks or KeyedLock()

    # ============================================
    # Lookup
    # ============================================

    def _filter_by_id(self, source_id: str) -> dict[str, Any]:
        return {self.system_id_key: {"$eq": source_id}}

    async def _find_entry(
        self,
        entity_type: EntityType,
        source_id: str,
        populate: Any = None,
    ) -> dict[str, Any] | None:
        entries = await self.cms.find(
            entity_type,
            self._filter_by_id(source_id),
            fields=["documentId"],
            populate=populate,
            status="draft",
        )
        return entries[0] if entries else None

    async def _upsert(
        self,
        entity_type: EntityType,
        source_id: str,
        build_payload: PayloadBuilder,
    ) -> UpsertResult:
        async with self.locks.hold((entity_type, source_id)):
            entry = await self._find_entry(entity_type, source_id)

            if entry is None:
                created = await self.cms.create(entity_type, build_payload(True))
                document_id = created["documentId"]
                logger.info(f"Created {entity_type.value} {source_id} in CMS as {document_id}")
                return UpsertResult(entity_type, source_id, document_id, created=True)

            document_id = entry["documentId"]
            await self.cms.update(entity_type, document_id, build_payload(False))
            logger.info(f"Updated {entity_type.value} {source_id} in CMS ({document_id})")
            return UpsertResult(entity_type, source_id, document_id)

    # ============================================
    # Upserts
    # ============================================

    async def upsert_product(self, product: SourceProduct) -> UpsertResult:
        """Upsert a product, then each of its variants in order.

        Variants are linked to the product entry through its documentId.
        If a variant fails, the entries this call created are deleted again
        before the error is re-raised.
        """
        result = await self._upsert(
            EntityType.PRODUCT,
            product.id,
            lambda create: self.mapper.product_payload(product, create=create),
        )

        created_variants: list[str] = []
        try:
            for variant in product.variants:
                upserted = await self._upsert_variant(variant, product_document_id=result.document_id)
                if upserted.created:
                    created_variants.append(upserted.source_id)
        except Exception:
            await self._rollback_product(result, created_variants)
            raise

        return result

    async def _rollback_product(self, result: UpsertResult, created_variants: list[str]) -> None:
        try:
            if result.created:
                # cascades to every variant linked to the new entry
                await self.delete_product(result.source_id)
            else:
                for variant_id in created_variants:
                    await self._delete(EntityType.VARIANT, variant_id)
        except Exception as e:
            logger.error(f"Rollback of product {result.source_id} failed: {e}")
            return

        logger.warning(
            f"Rolled back product {result.source_id} "
            f"({'new entry' if result.created else f'{len(created_variants)} new variants'})"
        )

    async def upsert_variant(
        self,
        variant: SourceVariant,
        product_document_id: str | None = None,
    ) -> UpsertResult | None:
        """Upsert a single variant.

        Returns None (and logs) when the variant is new and its parent
        product has not been synced to the CMS yet.
        """
        try:
            return await self._upsert_variant(variant, product_document_id)
        except NotFoundLocal as e:
            logger.warning(f"Skipping variant {variant.id}: {e}")
            return None

    async def _upsert_variant(
        self,
        variant: SourceVariant,
        product_document_id: str | None = None,
    ) -> UpsertResult:
        if product_document_id is None and variant.product_id:
            parent = await self._find_entry(EntityType.PRODUCT, variant.product_id)
            product_document_id = parent["documentId"] if parent else None

        async with self.locks.hold((EntityType.VARIANT, variant.id)):
            entry = await self._find_entry(
                EntityType.VARIANT,
                variant.id,
                populate={"product": {"fields": ["documentId"]}},
            )

            if entry is None:
                if product_document_id is None:
                    raise NotFoundLocal(EntityType.PRODUCT.value, variant.product_id or "")
                payload = self.mapper.variant_payload(
                    variant, create=True, product_document_id=product_document_id
                )
                created = await self.cms.create(EntityType.VARIANT, payload)
                document_id = created["documentId"]
                logger.info(f"Created variant {variant.id} in CMS as {document_id}")
                return UpsertResult(EntityType.VARIANT, variant.id, document_id, created=True)

            document_id = entry["documentId"]
            linked = (entry.get("product") or {}).get("documentId")
            relink = product_document_id if product_document_id != linked else None
            if relink:
                logger.info(f"Relinking variant {variant.id} from {linked} to {relink}")

            payload = self.mapper.variant_payload(
                variant, create=False, product_document_id=relink
            )
            await self.cms.update(EntityType.VARIANT, document_id, payload)
            logger.info(f"Updated variant {variant.id} in CMS ({document_id})")
            return UpsertResult(EntityType.VARIANT, variant.id, document_id)

    async def upsert_collection(self, collection: SourceCollection) -> UpsertResult:
        return await self._upsert(
            EntityType.COLLECTION,
            collection.id,
            lambda create: self.mapper.collection_payload(collection, create=create),
        )

    async def upsert_category(self, category: SourceCategory) -> UpsertResult:
        return await self._upsert(
            EntityType.CATEGORY,
            category.id,
            lambda create: self.mapper.category_payload(category, create=create),
        )

    async def upsert(self, entity_type: EntityType, entity: SourceEntity) -> UpsertResult | None:
        """Dispatch to the typed upsert for ``entity_type``."""
        if entity_type == EntityType.PRODUCT:
            return await self.upsert_product(entity)
        if entity_type == EntityType.VARIANT:
            return await self.upsert_variant(entity)
        if entity_type == EntityType.COLLECTION:
            return await self.upsert_collection(entity)
        if entity_type == EntityType.CATEGORY:
            return await self.upsert_category(entity)
        raise ValueError(f"Unsupported entity type: {entity_type}")

    # ============================================
    # Deletes
    # ============================================

    async def _delete(self, entity_type: EntityType, source_id: str) -> str | None:
        async with self.locks.hold((entity_type, source_id)):
            entry = await self._find_entry(entity_type, source_id)
            if entry is None:
                logger.info(f"No {entity_type.value} {source_id} in CMS, nothing to delete")
                return None

            await self.cms.delete(entity_type, entry["documentId"])
            logger.info(f"Deleted {entity_type.value} {source_id} from CMS")
            return source_id

    async def delete_product(self, product_id: str) -> str | None:
        """Delete a product entry and every variant entry linked to it.

        Variant entries are deleted concurrently; the product entry goes last.
        """
        async with self.locks.hold((EntityType.PRODUCT, product_id)):
            entry = await self._find_entry(
                EntityType.PRODUCT,
                product_id,
                populate={"variants": {"fields": ["documentId"]}},
            )
            if entry is None:
                logger.info(f"No product {product_id} in CMS, nothing to delete")
                return None

            variants = entry.get("variants") or []
            _, errors = await gather_with_errors(
                *(self.cms.delete(EntityType.VARIANT, v["documentId"]) for v in variants)
            )
            if errors:
                # Keep the product entry so a retry still finds its variants
                raise errors[0]
            await self.cms.delete(EntityType.PRODUCT, entry["documentId"])

        logger.info(f"Deleted product {product_id} and {len(variants)} variants from CMS")
        return product_id

    async def delete_variant(self, variant_id: str) -> str | None:
        return await self._delete(EntityType.VARIANT, variant_id)

    async def delete_collection(self, collection_id: str) -> str | None:
        return await self._delete(EntityType.COLLECTION, collection_id)

    async def delete_category(self, category_id: str) -> str | None:
        return await self._delete(EntityType.CATEGORY, category_id)

    async def delete(self, entity_type: EntityType, source_id: str) -> str | None:
        """Delete the entry for ``source_id``; None when it does not exist."""
        if entity_type == EntityType.PRODUCT:
            return await self.delete_product(source_id)
        return await self._delete(entity_type, source_id)

    # ============================================
    # Reads
    # ============================================

    async def list(
        self,
        entity_type: EntityType,
        source_ids: list[str],
        *,
        locale: str | None = None,
        populate: Any = None,
    ) -> list[dict[str, Any]]:
        """Fetch the entries for ``source_ids`` with the system id renamed.

        Each returned entry carries the source id under the entity's source
        key (``productId``, ``collectionId``, ...).
        """
        if not source_ids:
            return []

        entries = await self.cms.find(
            entity_type,
            {self.system_id_key: {"$in": list(source_ids)}},
            populate=populate,
            locale=locale,
        )
        return [self.mapper.map_entry(entity_type, entry) for entry in entries]

    async def get_single(
        self,
        content_type: str,
        *,
        locale: str | None = None,
        populate: Any = None,
    ) -> dict[str, Any] | None:
        return await self.cms.get_single(content_type, locale=locale, populate=populate)
