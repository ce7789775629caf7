"""Module options for the CMS sync service.

Settings are read from the environment (a .env file is loaded by the entry
points via python-dotenv) and validated once at startup. Missing CMS
credentials are fatal.

Environment Variables:
    CMS_BASE_URL: CMS API root, e.g. https://cms.example.com/api (required)
    CMS_API_KEY: Bearer token for the CMS API (required; CMS_TOKEN accepted)
    CMS_DEFAULT_LOCALE: Locale used when a request names none (default "en")
    CMS_SYSTEM_ID_KEY: CMS field holding the commerce id (default "systemId")
    CMS_REQUEST_TIMEOUT: Seconds per CMS request (default 30)
    CMS_RESYNC_PAGE_SIZE: Entities per full-resync page (default 100)
    DATABASE_URL: Commerce database connection string
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from .api.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"
DEFAULT_SYSTEM_ID_KEY = "systemId"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_RESYNC_PAGE_SIZE = 100


@dataclass
class CMSSettings:
    """Validated module options."""

    base_url: str
    api_key: str
    default_locale: str = DEFAULT_LOCALE
    system_id_key: str = DEFAULT_SYSTEM_ID_KEY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    resync_page_size: int = DEFAULT_RESYNC_PAGE_SIZE
    database_url: Optional[str] = None

    def __post_init__(self):
        self.default_locale = self.default_locale or DEFAULT_LOCALE
        self.system_id_key = self.system_id_key or DEFAULT_SYSTEM_ID_KEY

    @classmethod
    def from_env(cls) -> "CMSSettings":
        """Read settings from environment variables and validate them.

        Raises:
            ConfigurationError: If the CMS URL or credential is missing, or a
                numeric option cannot be parsed.
        """
        settings = cls(
            base_url=os.getenv("CMS_BASE_URL", ""),
            api_key=os.getenv("CMS_API_KEY") or os.getenv("CMS_TOKEN", ""),
            default_locale=os.getenv("CMS_DEFAULT_LOCALE", DEFAULT_LOCALE),
            system_id_key=os.getenv("CMS_SYSTEM_ID_KEY", DEFAULT_SYSTEM_ID_KEY),
            request_timeout=_parse_number(
                "CMS_REQUEST_TIMEOUT", float, DEFAULT_REQUEST_TIMEOUT
            ),
            resync_page_size=_parse_number(
                "CMS_RESYNC_PAGE_SIZE", int, DEFAULT_RESYNC_PAGE_SIZE
            ),
            database_url=os.getenv("DATABASE_URL") or None,
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise ConfigurationError unless the CMS can be addressed."""
        missing = []
        if not self.base_url:
            missing.append("CMS_BASE_URL")
        if not self.api_key:
            missing.append("CMS_API_KEY")
        if missing:
            raise ConfigurationError(
                "CMS base URL and API key are required",
                missing_keys=missing,
            )
        if self.request_timeout <= 0:
            raise ConfigurationError("CMS_REQUEST_TIMEOUT must be positive")
        if self.resync_page_size <= 0:
            raise ConfigurationError("CMS_RESYNC_PAGE_SIZE must be positive")

        self.base_url = self.base_url.rstrip("/")
        logger.debug(f"CMS base URL: {self.base_url}")


def _parse_number(name: str, kind, default):
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", cause=e)
