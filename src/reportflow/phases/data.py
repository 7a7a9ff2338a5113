"""
Data phase: resolve each data item to a data plugin and fetch it.

Items are fetched in declaration order. The phase fails fast: the first
item that does not validate or whose fetch raises aborts the run.

Source type detection:
    ::

        "http://…"                 → http
        "https://…"                → https
        '{"a": 1}' / "[1, 2]"      → inline (valid JSON text)
        "reports/*.json"           → glob   (wildcards, no whitespace)
        "/abs" "./rel" "../up"     → file
        {"type": "database", …}    → db
        {"type": T, …}             → T
        anything else              → inline

Tags:
    data-phase, source-detection, fail-fast, reportflow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import json
import re
import time
from collections.abc import Mapping
from typing import Any

from reportflow.context import RuntimeContext
from reportflow.core.errors import InvalidConfigError, ReportflowError, SourceError
from reportflow.core.logging import LogContext, get_logger
from reportflow.phases.types import DataItemConfig, DataResult, ExecutableConfig
from reportflow.registry.registries import DataRegistry

logger = get_logger(__name__)

PATH_PREFIXES = ("/", "./", "../")
TYPE_ALIASES = {"database": "db", "string": "inline"}
KNOWN_TYPES = frozenset({"inline", "file", "http", "https", "glob", "db"})

_GLOB_CHARS = re.compile(r"[*?]")


def _is_json_text(value: str) -> bool:
    try:
        json.loads(value)
    except ValueError:
        return False
    return True


def detect_source_type(source: Any, known_types: frozenset[str] | set[str] = KNOWN_TYPES) -> str:
    """Return the data plugin key that handles ``source``."""
    if isinstance(source, str):
        if source.startswith("http://"):
            return "http"
        if source.startswith("https://"):
            return "https"
        if _is_json_text(source):
            return "inline"
        if _GLOB_CHARS.search(source) and not any(ch.isspace() for ch in source):
            return "glob"
        if source.startswith(PATH_PREFIXES):
            return "file"
        return "inline"

    if isinstance(source, Mapping) and isinstance(source.get("type"), str):
        declared = source["type"]
        resolved = TYPE_ALIASES.get(declared, declared)
        if resolved not in known_types:
            raise SourceError(f"Unsupported source type: {declared}").with_context(source_type=declared)
        return resolved

    return "inline"


async def fetch_data_item(item: DataItemConfig, registry: DataRegistry, ctx: RuntimeContext) -> DataResult:
    """Validate and fetch a single data item."""
    source_type = detect_source_type(item.source, set(registry.keys()) | KNOWN_TYPES)
    plugin = registry.require(source_type)

    if not plugin.validate(item):
        raise InvalidConfigError(
            "source",
            item.source,
            f"Data item '{item.title}' failed validation for source type '{source_type}'",
        ).with_context(phase="data", source_type=source_type)

    return await plugin.fetch(item, ctx)


async def fetch_all_data(
    config: ExecutableConfig, registry: DataRegistry, ctx: RuntimeContext
) -> list[DataResult]:
    """Fetch every data item in order; the first failure aborts the phase."""
    results: list[DataResult] = []
    start = time.perf_counter()

    for item in config.data:
        async with LogContext(data_item=item.title):
            try:
                result = await fetch_data_item(item, registry, ctx)
            except Exception as exc:
                logger.error(
                    "data.fetch_failed",
                    title=item.title,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                if isinstance(exc, ReportflowError):
                    exc.with_context(phase="data")
                raise
        results.append(result)
        logger.debug("data.item_fetched", title=item.title, tag=result.tag)

    logger.info(
        "data.phase_complete",
        items=len(results),
        duration_ms=int((time.perf_counter() - start) * 1000),
    )
    return results


__all__ = ["detect_source_type", "fetch_data_item", "fetch_all_data"]
