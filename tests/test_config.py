"""Tests for environment-driven settings in config.py."""

import pytest
from pydantic import ValidationError

from config import Settings, load_settings


class TestLoadSettings:
    """Tests for load_settings."""

    def test_defaults(self, monkeypatch):
        for name in ("DATABASE_URL", "EXPANSION_CAP", "LOG_LEVEL"):
            monkeypatch.delenv(f"HOUSEHOLD_{name}", raising=False)

        settings = load_settings()

        assert settings.expansion_cap == 365
        assert settings.log_level == "INFO"

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HOUSEHOLD_DATABASE_URL", "sqlite://")
        monkeypatch.setenv("HOUSEHOLD_EXPANSION_CAP", "50")
        monkeypatch.setenv("HOUSEHOLD_LOG_LEVEL", "debug")

        settings = load_settings()

        assert settings.database_url == "sqlite://"
        assert settings.expansion_cap == 50
        assert settings.log_level == "DEBUG"

    def test_invalid_cap(self, monkeypatch):
        monkeypatch.setenv("HOUSEHOLD_EXPANSION_CAP", "0")

        with pytest.raises(ValidationError):
            load_settings()


class TestSettings:
    """Tests for Settings validation."""

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="LOUD")
