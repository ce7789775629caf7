#!/usr/bin/env python3
"""Tests for the CMS HTTP client.

The aiohttp session is replaced with a MagicMock whose ``request`` returns
an async context manager yielding a fake response.
"""
import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from cms_sync.api.client import CMSClient
from cms_sync.api.exceptions import (
    CMSRequestError,
    CMSUnavailableError,
    ConfigurationError,
)
from cms_sync.config import CMSSettings


def make_response(status=200, body=None):
    if not isinstance(body, str):
        body = "" if body is None else json.dumps(body)

    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=body)

    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


@pytest.fixture
def client():
    client = CMSClient("http://cms.test/api/", "secret-token", timeout=5)
    client._session = MagicMock()
    return client


def last_request(client):
    return client._session.request.call_args.kwargs


# ============================================
# Construction
# ============================================

class TestConstruction:
    """Test client configuration."""

    def test_missing_credentials(self):
        with pytest.raises(ConfigurationError) as exc_info:
            CMSClient("", "")
        assert exc_info.value.missing_keys == ["CMS_BASE_URL", "CMS_API_KEY"]

    def test_trailing_slash_is_stripped(self, client):
        assert client.base_url == "http://cms.test/api"

    def test_from_settings(self):
        settings = CMSSettings(base_url="http://cms.test/api", api_key="k", request_timeout=12)
        client = CMSClient.from_settings(settings)
        assert client.timeout == 12

    @pytest.mark.asyncio
    async def test_request_outside_context_manager(self):
        client = CMSClient("http://cms.test/api", "k")
        with pytest.raises(RuntimeError, match="async context manager"):
            await client.find("products")

    @pytest.mark.asyncio
    async def test_context_manager_opens_and_closes_session(self):
        async with CMSClient("http://cms.test/api", "k") as client:
            assert isinstance(client._session, aiohttp.ClientSession)
            session = client._session
        assert client._session is None
        assert session.closed


# ============================================
# Collection Operations
# ============================================

class TestCollectionOperations:
    """Test request shapes and envelope unwrapping."""

    @pytest.mark.asyncio
    async def test_find_encodes_filters_and_unwraps_data(self, client):
        client._session.request.return_value = make_response(
            body={"data": [{"documentId": "d1"}], "meta": {}}
        )

        entries = await client.find(
            "products",
            {"systemId": {"$eq": "p1"}},
            fields=["documentId"],
            status="draft",
        )

        assert entries == [{"documentId": "d1"}]
        request = last_request(client)
        assert request["method"] == "GET"
        assert request["url"] == "http://cms.test/api/products"
        assert request["params"] == [
            ("filters[systemId][$eq]", "p1"),
            ("fields[0]", "documentId"),
            ("status", "draft"),
        ]
        assert request["json"] is None

    @pytest.mark.asyncio
    async def test_find_with_no_data(self, client):
        client._session.request.return_value = make_response(body={"data": None})
        assert await client.find("collections") == []

    @pytest.mark.asyncio
    async def test_create_wraps_body_in_data(self, client):
        client._session.request.return_value = make_response(
            body={"data": {"documentId": "d9", "title": "Shirt"}}
        )

        created = await client.create("products", {"title": "Shirt", "systemId": "p1"})

        assert created["documentId"] == "d9"
        request = last_request(client)
        assert request["method"] == "POST"
        assert request["json"] == {"data": {"title": "Shirt", "systemId": "p1"}}
        assert ("status", "draft") in request["params"]

    @pytest.mark.asyncio
    async def test_update_targets_document(self, client):
        client._session.request.return_value = make_response(body={"data": {"documentId": "d9"}})

        await client.update("product-variants", "d9", {"sku": "S"})

        request = last_request(client)
        assert request["method"] == "PUT"
        assert request["url"] == "http://cms.test/api/product-variants/d9"
        assert request["json"] == {"data": {"sku": "S"}}

    @pytest.mark.asyncio
    async def test_delete_accepts_empty_body(self, client):
        client._session.request.return_value = make_response(status=204, body="")

        assert await client.delete("categories", "d3") is None
        assert last_request(client)["method"] == "DELETE"

    @pytest.mark.asyncio
    async def test_get_single_passes_locale_and_populate(self, client):
        client._session.request.return_value = make_response(body={"data": {"logo": "x.svg"}})

        data = await client.get_single("header", locale="de", populate="*")

        assert data == {"logo": "x.svg"}
        assert last_request(client)["params"] == [("locale", "de"), ("populate", "*")]


# ============================================
# Error Handling
# ============================================

class TestErrors:
    """Test mapping of failures to typed errors."""

    @pytest.mark.asyncio
    async def test_error_status_raises_request_error(self, client):
        client._session.request.return_value = make_response(
            status=400,
            body={"data": None, "error": {"status": 400, "message": "systemId must be unique"}},
        )

        with pytest.raises(CMSRequestError) as exc_info:
            await client.create("products", {"systemId": "p1"})

        error = exc_info.value
        assert error.message == "systemId must be unique"
        assert error.status_code == 400
        assert error.collection == "products"
        assert error.operation == "create"
        assert error.recoverable is False

    @pytest.mark.asyncio
    async def test_error_in_success_envelope(self, client):
        client._session.request.return_value = make_response(
            status=200, body={"error": {"message": "Invalid populate"}}
        )

        with pytest.raises(CMSRequestError, match="Invalid populate"):
            await client.find("products", populate={"nope": True})

    @pytest.mark.asyncio
    async def test_server_error_is_recoverable(self, client):
        client._session.request.return_value = make_response(status=503, body="")

        with pytest.raises(CMSRequestError) as exc_info:
            await client.find("products")

        assert exc_info.value.recoverable is True
        assert "HTTP 503" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_non_json_body(self, client):
        client._session.request.return_value = make_response(status=502, body="<html>Bad Gateway</html>")

        with pytest.raises(CMSRequestError, match="non-JSON"):
            await client.find("products")

    @pytest.mark.asyncio
    async def test_timeout_raises_unavailable(self, client):
        client._session.request.side_effect = asyncio.TimeoutError()

        with pytest.raises(CMSUnavailableError) as exc_info:
            await client.find("products")

        assert exc_info.value.details["timeout_seconds"] == 5
        assert exc_info.value.recoverable is True

    @pytest.mark.asyncio
    async def test_connection_error_raises_unavailable(self, client):
        client._session.request.side_effect = aiohttp.ClientConnectionError("refused")

        with pytest.raises(CMSUnavailableError, match="refused"):
            await client.delete("products", "d1")


# ============================================
# Connection Check
# ============================================

class TestVerifyConnection:
    """Test the startup connection check."""

    @pytest.mark.asyncio
    async def test_fetches_one_product_with_variants(self, client):
        client._session.request.return_value = make_response(body={"data": []})

        await client.verify_connection("systemId")

        params = dict(last_request(client)["params"])
        assert params["pagination[limit]"] == "1"
        assert params["fields[1]"] == "systemId"
        assert params["populate[variants][fields][2]"] == "sku"

    @pytest.mark.asyncio
    async def test_rejected_credentials_propagate(self, client):
        client._session.request.return_value = make_response(
            status=401, body={"error": {"message": "Missing or invalid credentials"}}
        )

        with pytest.raises(CMSRequestError) as exc_info:
            await client.verify_connection("systemId")
        assert exc_info.value.status_code == 401
