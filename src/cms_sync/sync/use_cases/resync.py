"""Full Resync Use Case - Re-push every entity of a type to the CMS.

The commerce backend is paged through by id, ``page_size`` ids at a time
(100 by default). Each page runs one upsert step. The resync is fail-soft:
a failing entity is recorded and the rest of the page, and the remaining
pages, still run. The SyncResult reports how many failed.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable

from ...api.error_sanitizer import describe_error
from ...api.exceptions import ErrorCollector
from ..domain.entities import EntityType, SyncResult
from ..domain.ports import ICommerceRepository
from .sync_entities import SyncEntitiesUseCase

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100

RESYNC_TYPES = (EntityType.PRODUCT, EntityType.COLLECTION, EntityType.CATEGORY)


class FullResyncUseCase:
    """Pages through all ids of an entity type and upserts each page.

    Example:
        use_case = FullResyncUseCase(repository, sync_entities, page_size=100)
        result = await use_case.execute(EntityType.CATEGORY)
        print(f"Synced {result.upserted} of {result.total} categories")
    """

    def __init__(
        self,
        repository: ICommerceRepository,
        sync_entities: SyncEntitiesUseCase,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self.repo = repository
        self.sync_entities = sync_entities
        self.page_size = page_size

    async def execute(self, entity_type: EntityType) -> SyncResult:
        """Resync every ``entity_type`` entity.

        Paging stops at the first short page. A failure to list ids stops
        the resync, since the remaining offsets can no longer be trusted.
        """
        started_at = datetime.now(timezone.utc)
        label = entity_type.value
        errors: list[str] = []
        offset = 0
        pages = 0
        total = 0
        upserted = 0

        logger.info(f"Starting {label} resync at {started_at.isoformat()}")

        while True:
            try:
                ids, total = await self.repo.list_ids(entity_type, offset, self.page_size)
            except Exception as e:
                logger.error(f"Failed to list {label} ids at offset {offset}: {e}")
                errors.append(f"Failed to list {label} ids at offset {offset}: {describe_error(e)}")
                break

            if ids:
                pages += 1
                step = await self.sync_entities.upsert(entity_type, ids, continue_on_error=True)
                upserted += len(step.synced)
                errors.extend(step.errors)
                logger.info(
                    f"Resynced {label} page {pages}: "
                    f"{len(step.synced)}/{len(ids)} upserted"
                )

            if len(ids) < self.page_size:
                break
            offset += self.page_size

        completed_at = datetime.now(timezone.utc)
        duration = (completed_at - started_at).total_seconds()

        logger.info(
            f"Synced {upserted} of {total} {label} entities to CMS in {duration:.2f}s "
            f"({pages} pages, {len(errors)} errors)"
        )

        return SyncResult(
            entity_type=entity_type,
            success=len(errors) == 0,
            total=total,
            upserted=upserted,
            errors=len(errors),
            pages=pages,
            synced_at=started_at,
            error_details=errors,
            completed_at=completed_at,
        )

    async def execute_all(self, entity_types: Iterable[EntityType] = RESYNC_TYPES) -> list[SyncResult]:
        """Resync several entity types one after another.

        A type whose resync raises is reported as a failed SyncResult; the
        other types still run.
        """
        results = []

        for entity_type in entity_types:
            collector = ErrorCollector()
            started_at = datetime.now(timezone.utc)
            try:
                results.append(await self.execute(entity_type))
            except Exception as e:
                logger.error(f"{entity_type.value} resync failed: {e}")
                collector.add(e, context={"entity_type": entity_type.value})
                results.append(
                    SyncResult(
                        entity_type=entity_type,
                        success=False,
                        total=0,
                        upserted=0,
                        errors=collector.count(),
                        pages=0,
                        synced_at=started_at,
                        error_details=collector.messages(describe_error),
                        completed_at=datetime.now(timezone.utc),
                    )
                )

        return results
