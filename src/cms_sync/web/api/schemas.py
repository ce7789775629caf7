"""Pydantic schemas for API request/response validation."""

from typing import Any, Optional, Union

from pydantic import BaseModel, Field

# populate accepts the CMS forms: "*", a list of relations or a nested dict
Populate = Union[str, list[str], dict[str, Any], None]


class ContentRequest(BaseModel):
    """Body of the POST storefront reads."""

    populate: Populate = None


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned by storefront reads."""

    message: str
    error: Optional[str] = None


class EventRequest(BaseModel):
    """An event delivered by the commerce backend's event transport."""

    name: str = Field(..., min_length=1)
    data: dict[str, Any] = Field(default_factory=dict)


class StepResultDTO(BaseModel):
    """Outcome of a single-entity event."""

    entity_type: str
    success: bool
    synced: list[dict[str, Any]] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    compensated: list[str] = Field(default_factory=list)


class SyncResultDTO(BaseModel):
    """Outcome of a full resync of one entity type."""

    entity_type: str
    success: bool
    total: int
    upserted: int
    errors: int
    pages: int
    synced_at: str
    duration_seconds: Optional[float] = None
    error_details: list[str] = Field(default_factory=list)


class EventResponse(BaseModel):
    """Response from dispatching an event synchronously."""

    name: str
    success: bool
    step: Optional[StepResultDTO] = None
    resyncs: list[SyncResultDTO] = Field(default_factory=list)
