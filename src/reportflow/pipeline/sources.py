"""
Raw fetch functions, dispatched by source kind.

Manifesto:
    A fetch unit does not care where data comes from. Each source kind
    maps to one coroutine ``(source, resources) -> payload``; the table is
    closed over ``SourceKind`` so an unhandled kind is caught when the
    unit is built, not when it runs.

Architecture:
    ::

        SourceKind      raw fetch          blocking work
        ──────────      ─────────          ─────────────
        string/inline   fetch_string       none
        file            fetch_file         asyncio.to_thread(read)
        http            fetch_http         httpx.AsyncClient (pooled)
        database        fetch_database     asyncio.to_thread(SQLAlchemy)
        glob            fetch_glob         asyncio.to_thread(read)

Tags:
    sources, http, file, database, glob, httpx, sqlalchemy, reportflow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from reportflow.core.errors import (
    DatabaseError,
    NetworkError,
    SourceError,
    SourceNotFoundError,
)
from reportflow.core.logging import get_logger
from reportflow.pipeline.types import (
    DatabaseSource,
    FileSource,
    GlobSource,
    HttpSource,
    StringSource,
)
from reportflow.resources import ResourcePool

logger = get_logger(__name__)

_BODY_METHODS = {"POST", "PUT", "PATCH"}


class SourceKind(str, Enum):
    STRING = "string"
    INLINE = "inline"
    FILE = "file"
    HTTP = "http"
    DATABASE = "database"
    GLOB = "glob"


RawFetch = Callable[[Any, ResourcePool], Awaitable[Any]]


def parse_json_or_text(content: str) -> Any:
    """Parse ``content`` as JSON, returning it unchanged if it is not JSON."""
    try:
        return json.loads(content)
    except ValueError:
        return content


# ── string / inline ──────────────────────────────────────────────────────


async def fetch_string(source: StringSource, resources: ResourcePool) -> Any:
    if isinstance(source.value, str):
        return parse_json_or_text(source.value)
    return source.value


# ── file ─────────────────────────────────────────────────────────────────


async def fetch_file(source: FileSource, resources: ResourcePool) -> Any:
    path = Path(source.path)
    if not path.is_file():
        raise SourceNotFoundError(f"File not found: {path}").with_context(source_type="file")

    content = await asyncio.to_thread(path.read_text, encoding=source.encoding)
    if path.suffix.lower() == ".json":
        return parse_json_or_text(content)
    return content


# ── http ─────────────────────────────────────────────────────────────────


def _request_kwargs(source: HttpSource) -> dict[str, Any]:
    method = source.method.upper()
    headers = dict(source.headers)
    kwargs: dict[str, Any] = {
        "headers": headers,
        "timeout": source.timeout_ms / 1000,
    }
    if source.params:
        kwargs["params"] = source.params

    auth = source.auth
    if auth is not None:
        if auth.type == "basic":
            kwargs["auth"] = httpx.BasicAuth(auth.username or "", auth.password or "")
        elif auth.type == "bearer":
            headers["Authorization"] = f"Bearer {auth.token or ''}"
        elif auth.type == "apikey":
            headers[auth.api_key_header] = auth.api_key or ""

    if method in _BODY_METHODS and source.body is not None:
        if isinstance(source.body, (str, bytes)):
            kwargs["content"] = source.body
        else:
            kwargs["json"] = source.body
    return kwargs


async def fetch_http(source: HttpSource, resources: ResourcePool) -> Any:
    client = resources.http_client()
    method = source.method.upper()
    try:
        response = await client.request(method, source.url, **_request_kwargs(source))
    except httpx.TimeoutException as exc:
        raise NetworkError(f"HTTP request timed out: {method} {source.url}", cause=exc).with_context(
            url=source.url, source_type="http"
        ) from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"HTTP request failed: {exc}", cause=exc).with_context(
            url=source.url, source_type="http"
        ) from exc

    if not response.is_success:
        raise NetworkError(
            f"HTTP {response.status_code}: {response.reason_phrase}",
            status_code=response.status_code,
        ).with_context(url=source.url, source_type="http")

    if "json" in response.headers.get("content-type", ""):
        try:
            return response.json()
        except ValueError:
            return response.text
    return response.text


# ── database ─────────────────────────────────────────────────────────────


def _run_query(engine: Engine, query: str, params: dict[str, Any]) -> list[dict[str, Any]]:
    with engine.connect() as conn:
        result = conn.execute(text(query), params)
        return [dict(row._mapping) for row in result]


async def fetch_database(source: DatabaseSource, resources: ResourcePool) -> Any:
    try:
        engine = resources.engine(source.connection)
        return await asyncio.to_thread(_run_query, engine, source.query, source.params)
    except SQLAlchemyError as exc:
        raise DatabaseError(f"Database query failed: {exc}", cause=exc).with_context(
            source_type="database"
        ) from exc


# ── glob ─────────────────────────────────────────────────────────────────


_GLOB_CHARS = frozenset("*?[")


def _split_pattern(source: GlobSource) -> tuple[Path, str, bool]:
    """Return ``(root, relative pattern, absolute)`` for ``source``.

    ``Path.glob`` only takes relative patterns, so an absolute pattern is
    split at its first wildcard segment and the fixed prefix becomes the
    root.
    """
    pattern = Path(source.pattern)
    if not pattern.is_absolute():
        return Path(source.root), source.pattern, False

    parts = pattern.parts
    split = next(
        (i for i, part in enumerate(parts) if _GLOB_CHARS.intersection(part)),
        len(parts) - 1,
    )
    return Path(*parts[:split]), "/".join(parts[split:]), True


def _read_matches(source: GlobSource) -> list[dict[str, Any]]:
    root, pattern, absolute = _split_pattern(source)
    results = []
    for path in sorted(p for p in root.glob(pattern) if p.is_file()):
        try:
            content = path.read_text(encoding=source.encoding)
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("source.glob_read_failed", file=str(path), error=str(exc))
            continue
        name = path.as_posix() if absolute else path.relative_to(root).as_posix()
        results.append({"file": name, "content": parse_json_or_text(content)})
    return results


async def fetch_glob(source: GlobSource, resources: ResourcePool) -> Any:
    try:
        return await asyncio.to_thread(_read_matches, source)
    except (ValueError, NotImplementedError) as exc:
        raise SourceError(f"Invalid glob pattern {source.pattern!r}: {exc}", cause=exc) from exc


# ── dispatch ─────────────────────────────────────────────────────────────

RAW_FETCHERS: dict[SourceKind, RawFetch] = {
    SourceKind.STRING: fetch_string,
    SourceKind.INLINE: fetch_string,
    SourceKind.FILE: fetch_file,
    SourceKind.HTTP: fetch_http,
    SourceKind.DATABASE: fetch_database,
    SourceKind.GLOB: fetch_glob,
}


def resolve_raw_fetch(kind: SourceKind | str) -> RawFetch:
    """Return the raw fetch coroutine for ``kind``."""
    try:
        return RAW_FETCHERS[SourceKind(kind)]
    except (KeyError, ValueError):
        raise SourceError(f"Unsupported source type: {kind}") from None


__all__ = [
    "SourceKind",
    "RawFetch",
    "RAW_FETCHERS",
    "resolve_raw_fetch",
    "parse_json_or_text",
    "fetch_string",
    "fetch_file",
    "fetch_http",
    "fetch_database",
    "fetch_glob",
]
