"""CMS API adapter for content operations addressed by entity type.

This adapter implements ICMSContentAPI and wraps the CMSClient to
translate entity types into CMS collection names.
"""

import logging
from typing import TYPE_CHECKING, Any

from ..domain.entities import EntityType
from ..domain.ports import ICMSContentAPI

if TYPE_CHECKING:
    from ...api.client import CMSClient

logger = logging.getLogger(__name__)


class CMSContentAPI(ICMSContentAPI):
    """CMS adapter for entry operations.

    Wraps CMSClient; one method call is one HTTP request. Entries are
    created as drafts, matching how lookups read them back (status=draft).
    """

    def __init__(self, client: "CMSClient", default_locale: str | None = None):
        """Initialize the API adapter.

        Args:
            client: Configured CMSClient instance (inside its context)
            default_locale: Locale applied to reads that name none
        """
        self.client = client
        self.default_locale = default_locale

    async def find(
        self,
        entity_type: EntityType,
        filters: dict[str, Any],
        *,
        fields: list[str] | None = None,
        populate: Any = None,
        status: str | None = None,
        locale: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self.client.find(
            entity_type.collection,
            filters,
            fields=fields,
            populate=populate,
            status=status,
            locale=locale,
        )

    async def create(self, entity_type: EntityType, data: dict[str, Any]) -> dict[str, Any]:
        logger.debug(f"Creating {entity_type.collection} in CMS")
        return await self.client.create(entity_type.collection, data, status="draft")

    async def update(
        self,
        entity_type: EntityType,
        document_id: str,
        data: dict[str, Any],
    ) -> dict[str, Any]:
        logger.debug(f"Updating {entity_type.collection} with documentId: {document_id}")
        return await self.client.update(entity_type.collection, document_id, data)

    async def delete(self, entity_type: EntityType, document_id: str) -> None:
        logger.debug(f"Deleting {entity_type.collection} with documentId: {document_id}")
        await self.client.delete(entity_type.collection, document_id)

    async def get_single(
        self,
        content_type: str,
        *,
        locale: str | None = None,
        populate: Any = None,
    ) -> dict[str, Any] | None:
        return await self.client.get_single(
            content_type,
            locale=locale or self.default_locale,
            populate=populate,
        )
