#!/usr/bin/env python3
"""HTTP Client for the CMS content API.

This module provides a reusable HTTP client that handles the common
concerns of talking to the CMS:

    - Bearer token authentication
    - Bracket-notation query encoding (filters, fields, populate, pagination)
    - Draft/published status and locale parameters
    - The {"data": ..., "error": ...} response envelope
    - Typed errors (CMSRequestError, CMSUnavailableError)
    - A hard request timeout; no automatic retry

Design Philosophy:
    This client knows HOW to talk to the CMS, but not WHAT to sync.
    It has no knowledge of products or variants. That knowledge belongs
    in the reconciliation service which composes this client.

Usage:
    async with CMSClient(base_url, api_key) as client:
        entries = await client.find(
            "products",
            filters={"systemId": {"$eq": "prod_123"}},
            fields=["documentId"],
            status="draft",
        )
        created = await client.create("products", {"title": "Shirt"})
        await client.delete("products", created["documentId"])
"""
import asyncio
import json
import logging
from typing import Any, Optional

import aiohttp

from .exceptions import CMSRequestError, CMSUnavailableError, ConfigurationError
from .query import encode_query

logger = logging.getLogger(__name__)

# Named collections exposed by the CMS content model
PRODUCTS = "products"
PRODUCT_VARIANTS = "product-variants"
CATEGORIES = "categories"
COLLECTIONS = "collections"

# Single types
HEADER = "header"
FOOTER = "footer"

DEFAULT_TIMEOUT_SECONDS = 30.0


class CMSClient:
    """Async HTTP client for the CMS collection API.

    Must be used as an async context manager so the session is closed:

        async with CMSClient(base_url, api_key) as client:
            data = await client.find("products")

    Attributes:
        base_url: CMS API root (e.g., "https://cms.example.com/api")
        timeout: Total seconds allowed per request
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_connections: int = 10,
    ):
        """Initialize the CMSClient.

        Args:
            base_url: CMS API root URL
            api_key: Bearer token for the CMS API
            timeout: Request timeout in seconds
            max_connections: Connection pool size

        Raises:
            ConfigurationError: If base_url or api_key is empty
        """
        missing = []
        if not base_url:
            missing.append("CMS_BASE_URL")
        if not api_key:
            missing.append("CMS_API_KEY")
        if missing:
            raise ConfigurationError(
                "CMS base URL and API key are required",
                missing_keys=missing,
            )

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._api_key = api_key
        self._max_connections = max_connections

        # Session is created in __aenter__, closed in __aexit__
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings) -> "CMSClient":
        """Build a client from a validated CMSSettings instance."""
        return cls(
            base_url=settings.base_url,
            api_key=settings.api_key,
            timeout=settings.request_timeout,
        )

    # ----------------------------------------
    # Context Manager Protocol
    # ----------------------------------------

    async def __aenter__(self) -> "CMSClient":
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(
                limit=self._max_connections,
                limit_per_host=self._max_connections,
            ),
            timeout=aiohttp.ClientTimeout(
                total=self.timeout,
                connect=min(10.0, self.timeout),
            ),
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    # ----------------------------------------
    # Low-Level Request Method
    # ----------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        collection: str,
        operation: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """Make a single HTTP request and unwrap the response envelope.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: Path below base_url (e.g., "products/abc123")
            collection: Collection or single type name, for error context
            operation: Logical operation name, for error context
            params: Nested query parameters (bracket-encoded)
            json_body: JSON request body

        Returns:
            The "data" member of the response, or None for empty bodies

        Raises:
            CMSRequestError: On non-2xx status or an "error" payload
            CMSUnavailableError: On connection failure or timeout
            RuntimeError: If called outside of the async context manager
        """
        if not self._session:
            raise RuntimeError(
                "CMSClient must be used as async context manager: "
                "async with CMSClient(...) as client:"
            )

        url = f"{self.base_url}/{path}"
        logger.debug(f"{method} {url} ({operation} {collection})")

        try:
            async with self._session.request(
                method=method,
                url=url,
                params=encode_query(params),
                json=json_body,
            ) as response:
                body = await response.text()
                status = response.status

        except asyncio.TimeoutError as e:
            raise CMSUnavailableError(
                f"Request to {path} timed out",
                collection=collection,
                operation=operation,
                timeout_seconds=self.timeout,
                cause=e,
            )

        except aiohttp.ClientError as e:
            raise CMSUnavailableError(
                f"Failed to reach CMS during {method} {path}: {e}",
                collection=collection,
                operation=operation,
                cause=e,
            )

        payload = self._parse_body(body, collection, operation, status)
        error = payload.get("error") if isinstance(payload, dict) else None

        if status >= 400 or error:
            message = (error or {}).get("message") if isinstance(error, dict) else None
            logger.error(f"CMS API error: {method} {url} -> {status} {message or body[:200]}")
            raise CMSRequestError(
                message or f"{method} {path} failed with HTTP {status}",
                collection=collection,
                operation=operation,
                status_code=status,
                response_body=body,
            )

        if isinstance(payload, dict):
            return payload.get("data")
        return payload

    @staticmethod
    def _parse_body(body: str, collection: str, operation: str, status: int) -> Any:
        if not body:
            return None
        try:
            return json.loads(body)
        except ValueError as e:
            raise CMSRequestError(
                "CMS returned a non-JSON response",
                collection=collection,
                operation=operation,
                status_code=status,
                response_body=body,
                cause=e,
            )

    # ----------------------------------------
    # Collection Operations
    # ----------------------------------------

    async def find(
        self,
        collection: str,
        filters: Optional[dict[str, Any]] = None,
        *,
        fields: Optional[list[str]] = None,
        locale: Optional[str] = None,
        populate: Any = None,
        status: Optional[str] = None,
        pagination: Optional[dict[str, int]] = None,
        sort: Optional[list[str]] = None,
    ) -> list[dict[str, Any]]:
        """List entries of a collection.

        Args:
            collection: Collection name (e.g., "products")
            filters: Filter spec, e.g. {"systemId": {"$in": ["a", "b"]}}
            fields: Fields to return
            locale: Content locale
            populate: Relation expansion spec ("*", list or nested dict)
            status: "draft" or "published"
            pagination: e.g. {"page": 1, "pageSize": 100} or {"limit": 1}
            sort: Sort expressions, e.g. ["title:asc"]

        Returns:
            List of raw entries (empty if none match)
        """
        params = {
            "filters": filters,
            "fields": fields,
            "locale": locale,
            "populate": populate,
            "status": status,
            "pagination": pagination,
            "sort": sort,
        }
        data = await self._request(
            "GET",
            collection,
            collection=collection,
            operation="find",
            params=params,
        )
        return list(data or [])

    async def create(
        self,
        collection: str,
        data: dict[str, Any],
        *,
        locale: Optional[str] = None,
        status: Optional[str] = "draft",
    ) -> dict[str, Any]:
        """Create an entry. Returns the entry with its CMS-assigned documentId."""
        return await self._request(
            "POST",
            collection,
            collection=collection,
            operation="create",
            params={"status": status, "locale": locale},
            json_body={"data": data},
        )

    async def update(
        self,
        collection: str,
        document_id: str,
        data: dict[str, Any],
        *,
        locale: Optional[str] = None,
    ) -> dict[str, Any]:
        """Update an entry by documentId."""
        return await self._request(
            "PUT",
            f"{collection}/{document_id}",
            collection=collection,
            operation="update",
            params={"locale": locale},
            json_body={"data": data},
        )

    async def delete(self, collection: str, document_id: str) -> None:
        """Delete an entry by documentId.

        The CMS answers 404 for an absent entry; callers check existence first.
        """
        await self._request(
            "DELETE",
            f"{collection}/{document_id}",
            collection=collection,
            operation="delete",
        )

    async def get_single(
        self,
        content_type: str,
        *,
        locale: Optional[str] = None,
        populate: Any = None,
    ) -> Optional[dict[str, Any]]:
        """Fetch a single-type document such as the header or footer."""
        return await self._request(
            "GET",
            content_type,
            collection=content_type,
            operation="get_single",
            params={"locale": locale, "populate": populate},
        )

    async def verify_connection(self, system_id_key: str) -> None:
        """Fetch one product with its variants to prove credentials and model.

        Raises:
            CMSRequestError: If the CMS rejects the request
            CMSUnavailableError: If the CMS cannot be reached
        """
        await self.find(
            PRODUCTS,
            fields=["title", system_id_key, "handle", "productType"],
            populate={"variants": {"fields": ["title", system_id_key, "sku"]}},
            pagination={"limit": 1},
        )
        logger.info(f"Connected to CMS at {self.base_url}")
