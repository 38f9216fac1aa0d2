"""
Tests for application settings.
"""

import pytest
from pydantic import ValidationError

from guide_search.config import Settings, get_settings, settings


class TestSettings:
    """Test settings defaults and overrides."""

    def test_defaults(self):
        config = Settings()

        assert config.SEARCH_THRESHOLD == 0.3
        assert config.MAX_RESULTS == 8
        assert config.MIN_QUERY_LENGTH == 2
        assert config.DEBOUNCE_MS == 200
        assert config.CATALOG_PATH is None

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("MAX_RESULTS", "5")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        config = Settings()

        assert config.MAX_RESULTS == 5
        assert config.LOG_LEVEL == "DEBUG"

    def test_out_of_range_value(self, monkeypatch):
        monkeypatch.setenv("MAX_RESULTS", "0")

        with pytest.raises(ValidationError):
            Settings()

    def test_empty_highlight_marker(self):
        with pytest.raises(ValidationError):
            Settings(HIGHLIGHT_OPEN_TAG="")

    def test_blank_catalog_path(self):
        assert Settings(CATALOG_PATH="  ").CATALOG_PATH is None

    def test_derived_values(self):
        config = Settings(DEBOUNCE_MS=150, CORS_ORIGINS="http://a.test, http://b.test,")

        assert config.debounce_seconds == 0.15
        assert config.cors_origins == ["http://a.test", "http://b.test"]

    def test_global_settings(self):
        assert get_settings() is settings
