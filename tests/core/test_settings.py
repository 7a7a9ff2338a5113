"""Tests for reportflow.core.settings."""

import pytest
from pydantic import ValidationError

from reportflow.core.settings import ReportflowSettings, get_settings
from reportflow.core.versioning import CONTRACTS_VERSION


class TestDefaults:
    def test_defaults(self, monkeypatch):
        """Without environment the documented defaults apply."""
        for key in ("CONTRACTS_VERSION", "LOG_LEVEL", "DEFAULT_MAX_PARALLEL", "DATE"):
            monkeypatch.delenv(f"REPORTFLOW_{key}", raising=False)
        settings = ReportflowSettings(_env_file=None)
        assert settings.contracts_version == CONTRACTS_VERSION
        assert settings.default_max_parallel == 5
        assert settings.default_timeout_ms is None
        assert settings.log_format == "console"


class TestEnvironment:
    def test_values_from_env(self, monkeypatch):
        """REPORTFLOW_ variables override the defaults."""
        monkeypatch.setenv("REPORTFLOW_DEFAULT_MAX_PARALLEL", "2")
        monkeypatch.setenv("REPORTFLOW_DATE", "2026-03-01")
        settings = ReportflowSettings(_env_file=None)
        assert settings.default_max_parallel == 2
        assert settings.date == "2026-03-01"

    def test_invalid_window_rejected(self, monkeypatch):
        """A parallel window below one fails validation."""
        monkeypatch.setenv("REPORTFLOW_DEFAULT_MAX_PARALLEL", "0")
        with pytest.raises(ValidationError):
            ReportflowSettings(_env_file=None)

    def test_get_settings_is_cached(self):
        """get_settings returns one shared instance."""
        assert get_settings() is get_settings()
