"""Sync Entities Use Case - Fetch source entities by id and sync them.

This is the workflow behind every single-entity event: the event carries
only an id, so the current state is always re-read from the commerce
backend before anything is written to the CMS.

Workflow:
1. Fetch entities by id (via ICommerceRepository); products include variants
2. Run the upsert step (via ReconciliationService)
3. Return the StepResult
"""

import logging

from ...api.error_sanitizer import describe_error
from ..domain.entities import EntityType, SourceEntity, StepResult
from ..domain.ports import ICommerceRepository
from .reconcile import ReconciliationService
from .steps import DeleteEntitiesStep, UpsertEntitiesStep

logger = logging.getLogger(__name__)


class SyncEntitiesUseCase:
    """Upserts or deletes CMS entries for a list of source ids.

    Example:
        use_case = SyncEntitiesUseCase(
            reconciler=ReconciliationService(cms, mapper),
            repository=PostgresCommerceRepository(pool),
        )
        result = await use_case.upsert(EntityType.PRODUCT, ["prod_123"])
    """

    def __init__(
        self,
        reconciler: ReconciliationService,
        repository: ICommerceRepository,
    ):
        """Initialize the use case with its dependencies.

        Args:
            reconciler: Service performing CMS reconciliation
            repository: Port for reading source entities and writing metadata
        """
        self.reconciler = reconciler
        self.repo = repository

    async def fetch(self, entity_type: EntityType, ids: list[str]) -> list[SourceEntity]:
        if entity_type == EntityType.PRODUCT:
            return await self.repo.get_products(ids)
        if entity_type == EntityType.VARIANT:
            return await self.repo.get_variants(ids)
        if entity_type == EntityType.COLLECTION:
            return await self.repo.get_collections(ids)
        if entity_type == EntityType.CATEGORY:
            return await self.repo.get_categories(ids)
        raise ValueError(f"Unsupported entity type: {entity_type}")

    async def upsert(
        self,
        entity_type: EntityType,
        ids: list[str],
        continue_on_error: bool = False,
    ) -> StepResult:
        """Fetch ``ids`` and upsert them into the CMS.

        Ids the commerce backend does not know are reported as skipped.
        """
        try:
            entities = await self.fetch(entity_type, ids)
        except Exception as e:
            logger.error(f"Failed to fetch {entity_type.value} entities: {e}")
            return StepResult(
                entity_type=entity_type,
                success=False,
                errors=[f"Failed to fetch {entity_type.value} entities: {describe_error(e)}"],
            )

        found = {entity.id for entity in entities}
        missing = [i for i in ids if i not in found]
        if missing:
            logger.warning(f"{entity_type.value} ids not found in commerce backend: {missing}")

        step = UpsertEntitiesStep(
            self.reconciler,
            self.repo,
            entity_type,
            continue_on_error=continue_on_error,
        )
        result = await step.run(entities)
        result.skipped.extend(missing)
        return result

    async def delete(self, entity_type: EntityType, ids: list[str]) -> StepResult:
        """Delete the CMS entries for ``ids``."""
        step = DeleteEntitiesStep(self.reconciler, entity_type)
        return await step.run(ids)
