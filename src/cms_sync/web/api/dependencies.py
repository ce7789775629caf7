"""FastAPI dependency injection for the CMS sync API.

This module owns the long-lived objects and hands out per-request use
cases built on them.

Lifecycle Management:
- Settings: read and validated at startup (missing CMS config is fatal)
- CMS client: aiohttp session opened at startup, shared across requests
- Database pool: commerce database, shared across requests
- Event bus: in-process bus with the dispatcher subscribed
All are closed at application shutdown.

Security:
- Admin endpoints require the X-API-Key header to match API_KEY
- DISABLE_AUTH=true turns authentication off (development only)
"""

import logging
import os
import secrets
from typing import Optional

import asyncpg
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from ...api.client import CMSClient
from ...api.resilience import KeyedLock
from ...config import CMSSettings
from ...events import EventDispatcher, LocalEventBus
from ...sync.adapters import CMSContentAPI, CMSFieldMapper, PostgresCommerceRepository
from ...sync.domain.ports import ICommerceRepository, IEventBus
from ...sync.use_cases import (
    FullResyncUseCase,
    ReadContentUseCase,
    ReconciliationService,
    SyncEntitiesUseCase,
)

logger = logging.getLogger(__name__)

# ========== Admin Authentication ==========

# Admin routes trigger CMS writes; the key comes from API_KEY
api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)

_api_key: Optional[str] = None


def _get_api_key() -> Optional[str]:
    """Admin key configured for this process, read from API_KEY once."""
    global _api_key
    if _api_key is None:
        _api_key = os.getenv("API_KEY", "")
    return _api_key or None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(
    api_key: Optional[str] = Security(api_key_header),
) -> bool:
    """Guard for the admin sync and event routes.

    With no API_KEY configured every admin request is refused with a 500,
    unless DISABLE_AUTH=true switches the check off for local work.

    Raises:
        HTTPException: 401 for a missing or wrong X-API-Key header
    """
    if os.getenv("DISABLE_AUTH", "").lower() == "true":
        logger.warning("Admin routes are unauthenticated (DISABLE_AUTH=true)")
        return True

    expected_key = _get_api_key()
    if not expected_key:
        logger.error("Refusing admin request: API_KEY is not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin API key is not configured",
        )

    if not api_key:
        raise _unauthorized("Missing API key. Send it in the X-API-Key header.")
    if not secrets.compare_digest(api_key, expected_key):
        raise _unauthorized("Invalid API key")

    return True


# ========== Global State ==========

_settings: Optional[CMSSettings] = None
_db_pool: Optional[asyncpg.Pool] = None
_cms_client: Optional[CMSClient] = None
_locks = KeyedLock()
_event_bus: Optional[LocalEventBus] = None


def init_settings() -> CMSSettings:
    """Read and validate settings. Raises ConfigurationError when invalid."""
    global _settings
    _settings = CMSSettings.from_env()
    return _settings


async def init_db_pool():
    """Initialize the commerce database connection pool."""
    global _db_pool

    database_url = get_settings().database_url
    if not database_url:
        raise ValueError("DATABASE_URL environment variable is required")

    _db_pool = await asyncpg.create_pool(
        database_url,
        min_size=2,
        max_size=10,
    )


async def init_cms_client(verify: bool = True):
    """Open the CMS client session and optionally check the connection."""
    global _cms_client

    settings = get_settings()
    client = CMSClient.from_settings(settings)
    await client.__aenter__()
    _cms_client = client

    if verify:
        await client.verify_connection(settings.system_id_key)


def init_event_bus() -> LocalEventBus:
    """Create the event bus and subscribe the sync handlers.

    Should be called after init_db_pool() and init_cms_client().
    """
    global _event_bus

    bus = LocalEventBus()
    EventDispatcher(get_sync_entities(), get_resync()).register(bus)
    _event_bus = bus
    return bus


async def close_event_bus(timeout: float = 30.0):
    global _event_bus
    if _event_bus:
        await _event_bus.close(timeout=timeout)
        _event_bus = None


async def close_cms_client():
    global _cms_client
    if _cms_client:
        await _cms_client.__aexit__(None, None, None)
        _cms_client = None


async def close_db_pool():
    global _db_pool
    if _db_pool:
        await _db_pool.close()
        _db_pool = None


# ========== Dependency Functions ==========


def get_settings() -> CMSSettings:
    if _settings is None:
        raise RuntimeError("Settings not initialized. Call init_settings() first.")
    return _settings


def get_db_pool() -> asyncpg.Pool:
    if _db_pool is None:
        raise RuntimeError("Database pool not initialized. Call init_db_pool() first.")
    return _db_pool


def get_cms_client() -> CMSClient:
    if _cms_client is None:
        raise RuntimeError("CMS client not initialized. Call init_cms_client() first.")
    return _cms_client


def get_commerce_repo() -> ICommerceRepository:
    return PostgresCommerceRepository(get_db_pool())


def get_reconciler() -> ReconciliationService:
    """Build a reconciliation service on the shared client and lock table."""
    settings = get_settings()
    return ReconciliationService(
        cms=CMSContentAPI(get_cms_client(), default_locale=settings.default_locale),
        mapper=CMSFieldMapper(settings.system_id_key),
        system_id_key=settings.system_id_key,
        locks=_locks,
    )


def get_sync_entities() -> SyncEntitiesUseCase:
    return SyncEntitiesUseCase(get_reconciler(), get_commerce_repo())


def get_resync() -> FullResyncUseCase:
    return FullResyncUseCase(
        get_commerce_repo(),
        get_sync_entities(),
        page_size=get_settings().resync_page_size,
    )


def get_read_content() -> ReadContentUseCase:
    return ReadContentUseCase(get_commerce_repo(), get_reconciler())


def get_dispatcher() -> EventDispatcher:
    return EventDispatcher(get_sync_entities(), get_resync())


def get_event_bus() -> IEventBus:
    if _event_bus is None:
        raise RuntimeError("Event bus not initialized. Call init_event_bus() first.")
    return _event_bus
