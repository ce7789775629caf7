"""Sync steps - Apply reconciliation to a batch and record the outcome.

A step processes its entities one at a time. When an entity fails, the step
stops and returns a permanent-failure StepResult so the event transport does
not redeliver. An upsert step then compensates by deleting the CMS entries
it created during the run.

A step built with ``continue_on_error=True`` (used by the full resync)
records each failure and carries on with the rest of the batch instead.
"""

import logging
import time
from collections.abc import Callable, Sequence
from typing import Optional

from ...api.error_sanitizer import describe_error
from ..domain.entities import EntityType, SourceEntity, StepResult, UpsertResult
from ..domain.ports import ICommerceRepository
from .reconcile import ReconciliationService

logger = logging.getLogger(__name__)

CMS_ID_KEY = "cms_id"
CMS_SYNCED_AT_KEY = "cms_synced_at"


def epoch_millis() -> int:
    return int(time.time() * 1000)


class UpsertEntitiesStep:
    """Upsert entities into the CMS and write the CMS key back to the source.

    After each successful upsert the source entity's metadata receives
    ``cms_id`` (the CMS documentId) and ``cms_synced_at`` (epoch ms).
    Other metadata keys are preserved by the repository merge.
    """

    def __init__(
        self,
        reconciler: ReconciliationService,
        repository: ICommerceRepository,
        entity_type: EntityType,
        continue_on_error: bool = False,
        clock: Optional[Callable[[], int]] = None,
    ):
        self.reconciler = reconciler
        self.repo = repository
        self.entity_type = entity_type
        self.continue_on_error = continue_on_error
        self.clock = clock or epoch_millis

    async def run(self, entities: Sequence[SourceEntity]) -> StepResult:
        result = StepResult(entity_type=self.entity_type, success=True)

        for entity in entities:
            try:
                upserted = await self.reconciler.upsert(self.entity_type, entity)
                if upserted is None:
                    result.skipped.append(entity.id)
                    continue

                result.synced.append(upserted)
                await self.repo.merge_metadata(
                    self.entity_type,
                    entity.id,
                    {
                        CMS_ID_KEY: upserted.document_id,
                        CMS_SYNCED_AT_KEY: self.clock(),
                    },
                )
            except Exception as e:
                logger.error(f"Error upserting {self.entity_type.value} {entity.id} in CMS: {e}")
                result.errors.append(
                    f"Error upserting {self.entity_type.value} {entity.id} in CMS: {describe_error(e)}"
                )

                if self.continue_on_error:
                    continue

                result.success = False
                result.compensated = await self.compensate(result.synced)
                return result

        result.success = not result.errors
        logger.info(
            f"Upserted {len(result.synced)} {self.entity_type.value} entries, "
            f"{len(result.skipped)} skipped, {len(result.errors)} errors"
        )
        return result

    async def compensate(self, synced: list[UpsertResult]) -> list[str]:
        """Delete the entries created in this run and unlink their sources.

        Entries that existed before the run are left alone. Compensation
        failures are logged; the step already reports failure.
        """
        compensated = []

        for upserted in synced:
            if not upserted.created:
                continue
            try:
                await self.reconciler.delete(self.entity_type, upserted.source_id)
                await self.repo.remove_metadata_keys(
                    self.entity_type,
                    upserted.source_id,
                    [CMS_ID_KEY, CMS_SYNCED_AT_KEY],
                )
                compensated.append(upserted.source_id)
            except Exception as e:
                logger.error(
                    f"Compensation failed for {self.entity_type.value} "
                    f"{upserted.source_id}: {e}"
                )

        if compensated:
            logger.warning(
                f"Compensated {len(compensated)} {self.entity_type.value} entries created before the failure"
            )
        return compensated


class DeleteEntitiesStep:
    """Delete CMS entries for source ids. Ids with no entry are skipped."""

    def __init__(self, reconciler: ReconciliationService, entity_type: EntityType):
        self.reconciler = reconciler
        self.entity_type = entity_type

    async def run(self, source_ids: Sequence[str]) -> StepResult:
        result = StepResult(entity_type=self.entity_type, success=True)

        for source_id in source_ids:
            try:
                deleted = await self.reconciler.delete(self.entity_type, source_id)
            except Exception as e:
                logger.error(f"Error deleting {self.entity_type.value} {source_id} in CMS: {e}")
                result.errors.append(
                    f"Error deleting {self.entity_type.value} {source_id} in CMS: {describe_error(e)}"
                )
                result.success = False
                return result

            if deleted is None:
                result.skipped.append(source_id)
            else:
                result.deleted.append(deleted)

        return result
