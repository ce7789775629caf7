"""FastAPI application for the CMS sync service.

This is the main entry point for the API server.
"""

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI

from .api.admin_router import router as admin_router
from .api.dependencies import (
    close_cms_client,
    close_db_pool,
    close_event_bus,
    init_cms_client,
    init_db_pool,
    init_event_bus,
    init_settings,
)
from .api.router import router

load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open and close the long-lived resources.

    - Startup: Validate settings, open the CMS client and check the
      connection, create the database pool, wire the event bus
    - Shutdown: Drain the event bus, close the CMS client and the pool
    """
    logger.info("Starting CMS Sync API...")

    # Missing CMS configuration is fatal
    settings = init_settings()

    try:
        await init_cms_client(verify=os.getenv("CMS_SKIP_VERIFY", "").lower() != "true")
        logger.info(f"CMS client initialized for {settings.base_url}")
    except Exception as e:
        logger.error(f"Failed to connect to CMS: {e}")
        await close_cms_client()
        raise

    try:
        await init_db_pool()
        logger.info("Database pool initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database pool: {e}")
        await close_cms_client()
        raise

    init_event_bus()
    logger.info("Event bus initialized")

    yield

    # Close in reverse order; the bus drains handlers that still use the client
    logger.info("Shutting down CMS Sync API...")

    await close_event_bus()
    logger.info("Event bus closed")

    await close_cms_client()
    logger.info("CMS client closed")

    await close_db_pool()
    logger.info("Database pool closed")


app = FastAPI(
    title="Commerce CMS Sync API",
    description="""
    Keeps CMS content in step with the commerce catalog.

    ## Features

    - **Storefront reads**: products, collections and categories with their CMS content
    - **Single types**: header and footer content per locale
    - **Admin sync**: full resync of products, collections and categories
    - **Event intake**: create/update/delete events from the commerce backend
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)
app.include_router(admin_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Commerce CMS Sync API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health():
    """Liveness probe; does not call the CMS or the database."""
    return {"status": "healthy"}


# Local development server
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "cms_sync.web.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
