"""
Tests for settings and logging configuration.
"""

import logging

from stepmachine.config import Settings, configure_logging, settings


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        """Test the default retry and backoff settings."""
        assert settings.DEFAULT_RETRIES == 5
        assert settings.MAX_RETRIES == 5
        assert settings.BACKOFF_BASE_DELAY == 1.0

    def test_environment_override(self, monkeypatch):
        """Test reading settings from the environment."""
        monkeypatch.setenv("DEFAULT_RETRIES", "2")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        overridden = Settings()

        assert overridden.DEFAULT_RETRIES == 2
        assert overridden.LOG_LEVEL == "DEBUG"


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_level_from_name(self, monkeypatch):
        """Test that level names are resolved before configuring."""
        seen = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: seen.update(kwargs))

        configure_logging("debug")

        assert seen["level"] == logging.DEBUG

    def test_default_level(self, monkeypatch):
        """Test falling back to the configured level."""
        seen = {}
        monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: seen.update(kwargs))
        monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")

        configure_logging()

        assert seen["level"] == logging.WARNING
