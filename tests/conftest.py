"""
Shared pytest fixtures for reportflow tests.

This module provides:
- A recording fake for retry backoff sleeps
- Isolated function tables and resource pools
- Settings pinned to a fixed report date
- A bootstrapped runtime context

Usage:
    Fixtures are auto-discovered by pytest; request them by name.

    @pytest.mark.asyncio
    async def test_retries(backoff_sleeps):
        ...
        assert backoff_sleeps == [0.1, 0.2, 0.4]
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from reportflow.bootstrap import bootstrap
from reportflow.context import RuntimeContext
from reportflow.core.settings import ReportflowSettings, clear_settings_cache
from reportflow.pipeline import retry as retry_module
from reportflow.pipeline.functions import FunctionTable, reset_default_functions
from reportflow.pipeline.types import FetcherConfig
from reportflow.resources import ResourcePool

REPORT_DATE = "2026-01-31"


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark tests that touch files, sqlite or the CLI as integration tests."""
    for item in items:
        name = Path(str(item.fspath)).name
        if name in {"test_sources.py", "test_cli.py", "test_lifecycle.py", "test_loader.py"}:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_process_state():
    """Each test starts with an empty default function table and fresh settings."""
    reset_default_functions()
    clear_settings_cache()
    yield
    reset_default_functions()
    clear_settings_cache()


@pytest.fixture
def backoff_sleeps(monkeypatch) -> list[float]:
    """Replace the retry backoff sleep with a recorder that returns immediately."""
    calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(round(seconds, 6))

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    return calls


@pytest.fixture
def functions() -> FunctionTable:
    return FunctionTable()


@pytest.fixture
def resources() -> ResourcePool:
    return ResourcePool(http_timeout_seconds=5.0)


# =============================================================================
# Runtime
# =============================================================================


@pytest.fixture
def settings() -> ReportflowSettings:
    return ReportflowSettings(_env_file=None, date=REPORT_DATE)


@pytest.fixture
def runtime(settings: ReportflowSettings, functions: FunctionTable) -> RuntimeContext:
    """A locked runtime context with only the built-in plugins."""
    return bootstrap(settings=settings, functions=functions)


# =============================================================================
# Factories
# =============================================================================


def inline_fetcher(fetcher_id: str, value: Any, **extra: Any) -> FetcherConfig:
    """A fetcher over an inline value."""
    return FetcherConfig.model_validate(
        {"id": fetcher_id, "source": {"type": "inline", "value": value}, **extra}
    )


@pytest.fixture
def make_inline():
    return inline_fetcher
