#!/usr/bin/env python3
"""Errors raised while syncing the commerce catalog with the CMS.

Every error carries a machine-readable ``code``, a ``details`` dict for
logging and a ``recoverable`` flag telling the event transport whether
re-delivering the event could help. Nothing here is retried automatically.

    CMSSyncError
    ├── ConfigurationError    missing CMS URL or credentials (fatal at startup)
    ├── CMSRequestError       the CMS answered with an error status or payload
    ├── CMSUnavailableError   the CMS could not be reached or timed out
    ├── NotFoundLocal         a CMS entry the sync depends on does not exist
    └── SourceNotFoundError   the commerce database has no such entity
"""
from datetime import datetime, timezone
from collections.abc import Callable
from typing import Any, Optional

# ============================================
# Base Exception
# ============================================

class CMSSyncError(Exception):
    """Root of the cms-sync error tree.

    Attributes:
        message: Text without the code or details
        code: Stable identifier, e.g. "CMS_REQUEST_ERROR"
        details: Structured context (collection, operation, ids, ...)
        timestamp: UTC time the error was raised
        cause: Lower-level exception, also chained as ``__cause__``
        recoverable: Whether re-delivering the event might succeed
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        recoverable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or type(self).__name__.upper()
        self.details = dict(details or {})
        self.timestamp = datetime.now(timezone.utc)
        self.cause = cause
        self.recoverable = recoverable
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.details:
            context = ", ".join(f"{key}={value}" for key, value in self.details.items())
            text = f"{text} ({context})"
        return text

    def to_dict(self) -> dict[str, Any]:
        """Structured form for log records and result payloads."""
        return {
            "error_type": type(self).__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
            "timestamp": self.timestamp.isoformat(),
            "cause": None if self.cause is None else str(self.cause),
        }


# ============================================
# Configuration
# ============================================

class ConfigurationError(CMSSyncError):
    """The service cannot address the CMS; raised once at startup."""

    def __init__(
        self,
        message: str,
        missing_keys: Optional[list[str]] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if missing_keys:
            details["missing_keys"] = missing_keys
        super().__init__(
            message,
            code="CONFIGURATION_ERROR",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.missing_keys = missing_keys or []


# ============================================
# CMS Errors
# ============================================

class CMSRequestError(CMSSyncError):
    """Raised when the CMS answers with a non-2xx status or an error payload.

    Attributes:
        collection: Collection or single type the call targeted
        operation: find / create / update / delete / get_single
        status_code: HTTP status (0 if the CMS sent an error in a 2xx body)
        response_body: Raw response body (truncated in details)
    """

    def __init__(
        self,
        message: str,
        collection: str,
        operation: str,
        status_code: int = 0,
        response_body: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        details["collection"] = collection
        details["operation"] = operation
        details["status_code"] = status_code
        if response_body:
            details["response_body"] = response_body[:500]

        kwargs.setdefault("recoverable", status_code in (429, 500, 502, 503, 504))
        kwargs.setdefault("code", "CMS_REQUEST_ERROR")

        super().__init__(message, details=details, **kwargs)
        self.collection = collection
        self.operation = operation
        self.status_code = status_code
        self.response_body = response_body


class CMSUnavailableError(CMSSyncError):
    """Raised when the CMS cannot be reached (connection failure or timeout)."""

    def __init__(
        self,
        message: str = "CMS is unavailable",
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if collection:
            details["collection"] = collection
        if operation:
            details["operation"] = operation
        if timeout_seconds:
            details["timeout_seconds"] = timeout_seconds
        super().__init__(
            message,
            code="CMS_UNAVAILABLE",
            details=details,
            recoverable=True,
            **kwargs,
        )
        self.collection = collection
        self.operation = operation


class NotFoundLocal(CMSSyncError):
    """Raised when an expected CMS mapping is missing.

    Soft failure: the reconciliation service catches it and returns None
    so callers can skip the entity.
    """

    def __init__(self, entity_type: str, source_id: str, **kwargs):
        details = kwargs.pop("details", {})
        details["entity_type"] = entity_type
        details["source_id"] = source_id
        super().__init__(
            f"No {entity_type} entry in CMS for '{source_id}'",
            code="NOT_FOUND_LOCAL",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.entity_type = entity_type
        self.source_id = source_id


class SourceNotFoundError(CMSSyncError):
    """Raised when the commerce backend has no entity with the given id."""

    def __init__(self, entity_type: str, source_id: str, **kwargs):
        details = kwargs.pop("details", {})
        details["entity_type"] = entity_type
        details["source_id"] = source_id
        super().__init__(
            f"{entity_type} '{source_id}' not found",
            code="NOT_FOUND",
            details=details,
            recoverable=False,
            **kwargs,
        )
        self.entity_type = entity_type
        self.source_id = source_id


# ============================================
# Error Aggregation
# ============================================

class ErrorCollector:
    """Gathers per-item failures of a batch so the batch can finish.

    Only the first ``max_errors`` are kept; ``messages()`` renders them with
    their context for ``SyncResult.error_details``.

    Example:
        collector = ErrorCollector()
        for category in categories:
            try:
                await reconciler.upsert_category(category)
            except CMSSyncError as e:
                collector.add(e, context={"category_id": category.id})

        if collector.has_errors():
            logger.warning("; ".join(collector.messages()))
    """

    def __init__(self, max_errors: int = 100):
        self.max_errors = max_errors
        self.errors: list[tuple[Exception, dict[str, Any]]] = []

    def add(self, error: Exception, context: Optional[dict[str, Any]] = None):
        if len(self.errors) >= self.max_errors:
            return
        self.errors.append((error, dict(context or {})))

    def has_errors(self) -> bool:
        return bool(self.errors)

    def count(self) -> int:
        return len(self.errors)

    def messages(self, describe: Callable[[Exception], str] = str) -> list[str]:
        """Error texts prefixed with their context, for result payloads.

        ``describe`` renders each error; pass a sanitizing function when the
        messages leave the process.
        """
        out = []
        for error, context in self.errors:
            prefix = ", ".join(f"{k}={v}" for k, v in context.items())
            text = describe(error)
            out.append(f"{prefix}: {text}" if prefix else text)
        return out


__all__ = [
    "CMSSyncError",
    "ConfigurationError",
    "CMSRequestError",
    "CMSUnavailableError",
    "NotFoundLocal",
    "SourceNotFoundError",
    "ErrorCollector",
]
