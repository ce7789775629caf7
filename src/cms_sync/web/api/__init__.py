"""API layer for the CMS sync service.

Contains:
- Storefront router: source entities merged with CMS content
- Admin router: full resync trigger and event intake
- Pydantic schemas for request/response validation
"""

from .admin_router import router as admin_router
from .router import router
from .schemas import (
    ContentRequest,
    EventRequest,
    EventResponse,
    MessageResponse,
    StepResultDTO,
    SyncResultDTO,
)

__all__ = [
    "router",
    "admin_router",
    "ContentRequest",
    "EventRequest",
    "EventResponse",
    "MessageResponse",
    "StepResultDTO",
    "SyncResultDTO",
]
