"""CMS API layer.

HTTP client, query encoding, exceptions and small concurrency helpers for
talking to the CMS content API. Nothing in this package knows about
products or variants.
"""

from .client import CMSClient
from .exceptions import (
    CMSRequestError,
    CMSSyncError,
    CMSUnavailableError,
    ConfigurationError,
    ErrorCollector,
    NotFoundLocal,
    SourceNotFoundError,
)
from .query import encode_query
from .resilience import KeyedLock, gather_with_errors

__all__ = [
    "CMSClient",
    "CMSRequestError",
    "CMSSyncError",
    "CMSUnavailableError",
    "ConfigurationError",
    "ErrorCollector",
    "KeyedLock",
    "NotFoundLocal",
    "SourceNotFoundError",
    "encode_query",
    "gather_with_errors",
]
