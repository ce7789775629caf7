"""FastAPI router for admin CMS sync operations.

Endpoints:
    POST /admin/cms/sync    - Trigger a full resync of products, collections
                              and categories (runs in the background)
    POST /admin/cms/events  - Dispatch one event synchronously and return
                              its result

All endpoints require the X-API-Key header.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ...api.error_sanitizer import describe_error
from ...events import EventDispatcher, UnknownEventError, names
from ...sync.domain.entities import StepResult, SyncResult
from ...sync.domain.ports import IEventBus
from .dependencies import get_dispatcher, get_event_bus, verify_api_key
from .schemas import (
    EventRequest,
    EventResponse,
    MessageResponse,
    StepResultDTO,
    SyncResultDTO,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin/cms", tags=["CMS Admin"])


def _sync_result_to_dto(result: SyncResult) -> SyncResultDTO:
    return SyncResultDTO(
        entity_type=result.entity_type.value,
        success=result.success,
        total=result.total,
        upserted=result.upserted,
        errors=result.errors,
        pages=result.pages,
        synced_at=result.synced_at.isoformat(),
        duration_seconds=result.duration_seconds,
        error_details=result.error_details,
    )


@router.post("/sync", response_model=MessageResponse)
async def trigger_sync(
    bus: IEventBus = Depends(get_event_bus),
    _auth: bool = Depends(verify_api_key),
):
    """Trigger a full CMS resync.

    Emits one resync event per entity type and returns immediately; the
    resyncs run in the background.
    """
    try:
        await asyncio.gather(*(bus.emit(name, {}) for name in names.RESYNC_EVENTS))
    except Exception as e:
        logger.error(f"Failed to trigger CMS sync: {e}")
        return JSONResponse(
            status_code=500,
            content={"message": f"Failed to trigger CMS sync: {describe_error(e)}"},
        )

    logger.info("CMS sync triggered")
    return MessageResponse(message="CMS sync triggered successfully")


@router.post("/events", response_model=EventResponse)
async def dispatch_event(
    request: EventRequest,
    dispatcher: EventDispatcher = Depends(get_dispatcher),
    _auth: bool = Depends(verify_api_key),
):
    """Run the handler for one event and return its outcome.

    Used when the commerce backend delivers events over HTTP. A failed
    entity sync is reported with ``success: false``; it is not retried.
    """
    try:
        result = await dispatcher.handle(request.name, request.data)
    except UnknownEventError as e:
        raise HTTPException(status_code=404, detail=describe_error(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=describe_error(e))

    if isinstance(result, StepResult):
        return EventResponse(
            name=request.name,
            success=result.success,
            step=StepResultDTO(**result.to_dict()),
        )

    resyncs = result if isinstance(result, list) else [result]
    return EventResponse(
        name=request.name,
        success=all(r.success for r in resyncs),
        resyncs=[_sync_result_to_dto(r) for r in resyncs],
    )
