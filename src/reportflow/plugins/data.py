"""
Built-in data plugins.

Each plugin turns a data item's ``source`` into a pipeline source model
and runs it through a ``FetchUnit``, so data items get the same retry,
timeout and error handling as pipeline fetchers.

    type    source forms
    ──────  ───────────────────────────────────────────────────────────
    inline  any value; strings are parsed as JSON when possible
    file    "./path", "/abs/path", "../path" or {type: file, path}
    http    "http://..." or {type: http, url, method, headers, auth, ...}
    https   "https://..." or {type: https, ...}
    glob    "reports/*.json" or {type: glob, pattern, root}
    db      {type: db, connection, query, params}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from reportflow.context import RuntimeContext
from reportflow.core.errors import InvalidConfigError
from reportflow.core.versioning import CONTRACTS_VERSION
from reportflow.pipeline.fetcher import FetchUnit
from reportflow.pipeline.types import (
    DatabaseSource,
    ErrorConfig,
    FetcherConfig,
    FileSource,
    FormatterConfig,
    FormatterType,
    GlobSource,
    HttpSource,
    ProcessConfig,
    StringSource,
)
from reportflow.phases.types import DataItemConfig, DataResult
from reportflow.registry.plugins import PluginDescriptor, PluginPhase

COMPATIBLE_CONTRACTS = "^1.0.0"
PATH_PREFIXES = ("/", "./", "../")


def _descriptor(name: str) -> PluginDescriptor:
    return PluginDescriptor(
        name=name,
        version=CONTRACTS_VERSION,
        compatible_contracts=COMPATIBLE_CONTRACTS,
        phase=PluginPhase.DATA,
    )


def describe_data(data: Any) -> dict[str, Any]:
    """Shape metadata for a payload (table / object / text / value)."""
    if isinstance(data, list):
        meta: dict[str, Any] = {"data_type": "table", "rows": len(data)}
        if data and isinstance(data[0], Mapping):
            meta["columns"] = len(data[0])
        return meta
    if isinstance(data, Mapping):
        return {"data_type": "object"}
    if isinstance(data, str):
        return {"data_type": "text"}
    return {"data_type": "value"}


class SourceDataPlugin(ABC):
    """Base for plugins that fetch through a pipeline ``FetchUnit``."""

    type: str = ""
    descriptor: PluginDescriptor

    @abstractmethod
    def validate(self, item: DataItemConfig) -> bool:
        """True when this plugin can fetch ``item``."""

    @abstractmethod
    def build_source(self, source: Any) -> Any:
        """Turn a data item source into a pipeline source model."""

    def formatter_for(self, item: DataItemConfig) -> FormatterConfig | None:
        return None

    def tag_for(self, item: DataItemConfig) -> str:
        return item.tag or self.type

    async def fetch(self, item: DataItemConfig, ctx: RuntimeContext) -> DataResult:
        try:
            source = self.build_source(item.source)
        except ValidationError as exc:
            raise InvalidConfigError(
                "source", item.source, f"Invalid {self.type} source for '{item.title}': {exc}"
            ) from exc

        config = FetcherConfig(
            id=item.title,
            source=source,
            process=ProcessConfig(
                formatter=self.formatter_for(item),
                error=item.error or ErrorConfig(),
            ),
            retry=item.retry,
            timeout_ms=item.timeout_ms,
        )
        unit = FetchUnit(
            config,
            resources=ctx.resources,
            functions=ctx.functions,
            default_timeout_ms=ctx.settings.default_timeout_ms,
        )
        result = await unit.execute()

        meta = describe_data(result.data)
        meta.update(
            timestamp_ms=result.metadata.timestamp_ms,
            duration_ms=result.metadata.duration_ms,
            attempts=result.metadata.attempts,
            success=result.success,
        )
        return DataResult(title=item.title, tag=self.tag_for(item), data=result.data, meta=meta)


def _typed(source: Any) -> Mapping[str, Any] | None:
    return source if isinstance(source, Mapping) else None


# ── inline ───────────────────────────────────────────────────────────────


class InlineDataPlugin(SourceDataPlugin):
    type = "inline"
    descriptor = _descriptor("inline-data")

    def validate(self, item: DataItemConfig) -> bool:
        return True

    def build_source(self, source: Any) -> StringSource:
        typed = _typed(source)
        if typed is not None and typed.get("type") == "inline":
            return StringSource(type="inline", value=typed.get("value", typed.get("data")))
        return StringSource(type="inline", value=source)


# ── file ─────────────────────────────────────────────────────────────────


class FileDataPlugin(SourceDataPlugin):
    type = "file"
    descriptor = _descriptor("file-data")

    def validate(self, item: DataItemConfig) -> bool:
        if isinstance(item.source, str):
            return item.source.startswith(PATH_PREFIXES)
        typed = _typed(item.source)
        return typed is not None and isinstance(typed.get("path"), str)

    def build_source(self, source: Any) -> FileSource:
        if isinstance(source, str):
            return FileSource(path=source)
        return FileSource.model_validate({**source, "type": "file"})

    def formatter_for(self, item: DataItemConfig) -> FormatterConfig | None:
        path = item.source if isinstance(item.source, str) else item.source.get("path", "")
        if Path(path).suffix.lower() == ".csv":
            return FormatterConfig(type=FormatterType.CSV)
        return None

    def tag_for(self, item: DataItemConfig) -> str:
        if item.tag:
            return item.tag
        return item.source if isinstance(item.source, str) else item.source["path"]


# ── http / https ─────────────────────────────────────────────────────────


class HttpDataPlugin(SourceDataPlugin):
    def __init__(self, scheme: str = "http"):
        self.type = scheme
        self.descriptor = _descriptor(f"{scheme}-data")

    def validate(self, item: DataItemConfig) -> bool:
        if isinstance(item.source, str):
            return item.source.startswith(("http://", "https://"))
        typed = _typed(item.source)
        return typed is not None and isinstance(typed.get("url"), str)

    def build_source(self, source: Any) -> HttpSource:
        if isinstance(source, str):
            return HttpSource(url=source)
        return HttpSource.model_validate({**source, "type": "http"})

    def tag_for(self, item: DataItemConfig) -> str:
        if item.tag:
            return item.tag
        return item.source if isinstance(item.source, str) else item.source["url"]


# ── glob ─────────────────────────────────────────────────────────────────


class GlobDataPlugin(SourceDataPlugin):
    type = "glob"
    descriptor = _descriptor("glob-data")

    def validate(self, item: DataItemConfig) -> bool:
        if isinstance(item.source, str):
            return any(ch in item.source for ch in "*?[")
        typed = _typed(item.source)
        return typed is not None and isinstance(typed.get("pattern"), str)

    def build_source(self, source: Any) -> GlobSource:
        if isinstance(source, str):
            return GlobSource(pattern=source)
        return GlobSource.model_validate({**source, "type": "glob"})


# ── db ───────────────────────────────────────────────────────────────────


class DatabaseDataPlugin(SourceDataPlugin):
    type = "db"
    descriptor = _descriptor("db-data")

    def validate(self, item: DataItemConfig) -> bool:
        typed = _typed(item.source)
        return (
            typed is not None
            and isinstance(typed.get("connection"), str)
            and isinstance(typed.get("query"), str)
        )

    def build_source(self, source: Any) -> DatabaseSource:
        return DatabaseSource.model_validate({**source, "type": "database"})

    def tag_for(self, item: DataItemConfig) -> str:
        if item.tag:
            return item.tag
        try:
            return make_url(item.source["connection"]).render_as_string(hide_password=True)
        except ArgumentError:
            return self.type


def data_plugins() -> list[SourceDataPlugin]:
    return [
        InlineDataPlugin(),
        FileDataPlugin(),
        HttpDataPlugin("http"),
        HttpDataPlugin("https"),
        GlobDataPlugin(),
        DatabaseDataPlugin(),
    ]


__all__ = [
    "SourceDataPlugin",
    "InlineDataPlugin",
    "FileDataPlugin",
    "HttpDataPlugin",
    "GlobDataPlugin",
    "DatabaseDataPlugin",
    "data_plugins",
    "describe_data",
]
