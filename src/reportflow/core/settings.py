"""Process-wide settings for reportflow.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    ``ReportflowSettings`` is the single place the contracts version, log
    level, parallelism defaults and fetch deadlines are resolved from
    ``REPORTFLOW_*`` environment variables or a ``.env`` file.

Examples:
    >>> from reportflow.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.contracts_version
    '1.0.0'

Tags:
    settings, configuration, pydantic, environment, reportflow

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from reportflow.core.versioning import CONTRACTS_VERSION


class ReportflowSettings(BaseSettings):
    """Reportflow configuration.

    Fields
    ──────
    contracts_version    : Version every registry checks plugin ranges against
    log_level            : Structlog log level
    log_format           : ``json`` or ``console``
    default_max_parallel : Window size when an aggregate omits ``max_parallel``
    default_timeout_ms   : Per-attempt fetch deadline (None = unbounded)
    http_timeout_seconds : httpx client timeout for pooled clients
    date                 : Report date override (YYYY-MM-DD)
    """

    model_config = SettingsConfigDict(
        env_prefix="REPORTFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Plugins ──────────────────────────────────────────────────
    contracts_version: str = Field(default=CONTRACTS_VERSION)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["json", "console"] = Field(default="console")

    # ── Pipeline ─────────────────────────────────────────────────
    default_max_parallel: int = Field(default=5, ge=1)
    default_timeout_ms: int | None = Field(default=None, ge=1)
    http_timeout_seconds: float = Field(default=30.0, gt=0)

    # ── Run ──────────────────────────────────────────────────────
    date: str | None = Field(default=None, description="Report date override (YYYY-MM-DD)")


@lru_cache(maxsize=1)
def get_settings() -> ReportflowSettings:
    """Return the cached settings instance."""
    return ReportflowSettings()


def clear_settings_cache() -> None:
    """Drop the cached settings (for tests that patch the environment)."""
    get_settings.cache_clear()
