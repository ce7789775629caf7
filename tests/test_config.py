"""Tests for settings loading and validation."""

import pytest

from cms_sync.api.exceptions import ConfigurationError
from cms_sync.config import CMSSettings

ENV_VARS = [
    "CMS_BASE_URL",
    "CMS_API_KEY",
    "CMS_TOKEN",
    "CMS_DEFAULT_LOCALE",
    "CMS_SYSTEM_ID_KEY",
    "CMS_REQUEST_TIMEOUT",
    "CMS_RESYNC_PAGE_SIZE",
    "DATABASE_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromEnv:
    """Test reading settings from the environment."""

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("CMS_BASE_URL", "https://cms.example.com/api/")
        monkeypatch.setenv("CMS_API_KEY", "token")

        settings = CMSSettings.from_env()

        assert settings.base_url == "https://cms.example.com/api"
        assert settings.default_locale == "en"
        assert settings.system_id_key == "systemId"
        assert settings.request_timeout == 30.0
        assert settings.resync_page_size == 100
        assert settings.database_url is None

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("CMS_BASE_URL", "https://cms.example.com/api")
        monkeypatch.setenv("CMS_TOKEN", "legacy-token")
        monkeypatch.setenv("CMS_DEFAULT_LOCALE", "de")
        monkeypatch.setenv("CMS_SYSTEM_ID_KEY", "medusaId")
        monkeypatch.setenv("CMS_RESYNC_PAGE_SIZE", "25")
        monkeypatch.setenv("DATABASE_URL", "postgresql://localhost/shop")

        settings = CMSSettings.from_env()

        assert settings.api_key == "legacy-token"
        assert settings.default_locale == "de"
        assert settings.system_id_key == "medusaId"
        assert settings.resync_page_size == 25
        assert settings.database_url == "postgresql://localhost/shop"

    def test_missing_credentials_are_fatal(self):
        with pytest.raises(ConfigurationError) as exc_info:
            CMSSettings.from_env()
        assert exc_info.value.missing_keys == ["CMS_BASE_URL", "CMS_API_KEY"]

    def test_unparseable_number(self, monkeypatch):
        monkeypatch.setenv("CMS_BASE_URL", "https://cms.example.com/api")
        monkeypatch.setenv("CMS_API_KEY", "token")
        monkeypatch.setenv("CMS_REQUEST_TIMEOUT", "soon")

        with pytest.raises(ConfigurationError, match="CMS_REQUEST_TIMEOUT"):
            CMSSettings.from_env()


class TestValidate:
    """Test validation of directly constructed settings."""

    def test_non_positive_page_size(self):
        settings = CMSSettings(base_url="http://cms", api_key="k", resync_page_size=0)
        with pytest.raises(ConfigurationError, match="CMS_RESYNC_PAGE_SIZE"):
            settings.validate()

    def test_empty_locale_falls_back(self):
        settings = CMSSettings(base_url="http://cms", api_key="k", default_locale="", system_id_key="")
        assert settings.default_locale == "en"
        assert settings.system_id_key == "systemId"
