"""Function Table — injectable name → callable lookup.

Manifesto:
Pipeline documents are data (YAML/JSON) and cannot carry code. Custom
filter predicates, custom formatter transforms and custom aggregate
functions are referenced by name instead; the table resolves those names
at execution time. The same table can be shared process-wide or passed
explicitly for test isolation.

ARCHITECTURE
────────────
::

    FunctionTable
      ├── .register(kind, name, fn)  ─ store callable
      ├── .get(kind, name)           ─ lookup, None if absent
      ├── .resolve(kind, ref)        ─ callable passes through, str is looked up
      └── .has(kind, name)

    Kinds:
      "filter"     fn(data) -> filtered data
      "transform"  fn(data) -> reshaped data
      "aggregate"  fn(results: list[PipelineResult]) -> data

    Decorators (default table unless one is passed):
      register_filter(name), register_transform(name), register_aggregate(name)

Tags:
    reportflow, pipeline, functions, extension-point

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

FILTER = "filter"
TRANSFORM = "transform"
AGGREGATE = "aggregate"


class FunctionTable:
    """Named callables used by custom filter, formatter and aggregate modes.

    Example:
        >>> table = FunctionTable()
        >>> table.register("filter", "only_even", lambda rows: [r for r in rows if r % 2 == 0])
        >>> table.resolve("filter", "only_even")([1, 2, 3, 4])
        [2, 4]
    """

    def __init__(self) -> None:
        self._functions: dict[str, Callable[..., Any]] = {}

    def register(self, kind: str, name: str, fn: Callable[..., Any]) -> None:
        self._functions[f"{kind}:{name}"] = fn

    def get(self, kind: str, name: str) -> Callable[..., Any] | None:
        return self._functions.get(f"{kind}:{name}")

    def has(self, kind: str, name: str) -> bool:
        return f"{kind}:{name}" in self._functions

    def resolve(self, kind: str, ref: str | Callable[..., Any] | None) -> Callable[..., Any] | None:
        """Return the callable for ``ref`` or None when it cannot be resolved."""
        if ref is None:
            return None
        if callable(ref):
            return ref
        return self.get(kind, ref)

    def list_functions(self, kind: str | None = None) -> list[tuple[str, str]]:
        result = []
        for key in self._functions:
            k, n = key.split(":", 1)
            if kind is None or k == kind:
                result.append((k, n))
        return sorted(result)


# === GLOBAL DEFAULT TABLE ===

_default_table: FunctionTable | None = None


def get_default_functions() -> FunctionTable:
    """Get the process-wide table, creating it on first access."""
    global _default_table
    if _default_table is None:
        _default_table = FunctionTable()
    return _default_table


def reset_default_functions() -> None:
    """Reset the process-wide table (for testing)."""
    global _default_table
    _default_table = None


# === DECORATOR API ===


def register_function(kind: str, name: str, table: FunctionTable | None = None):
    """Decorator registering a callable under ``kind:name``."""

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        (table or get_default_functions()).register(kind, name, fn)
        return fn

    return decorator


def register_filter(name: str, table: FunctionTable | None = None):
    return register_function(FILTER, name, table)


def register_transform(name: str, table: FunctionTable | None = None):
    return register_function(TRANSFORM, name, table)


def register_aggregate(name: str, table: FunctionTable | None = None):
    return register_function(AGGREGATE, name, table)


__all__ = [
    "FILTER",
    "TRANSFORM",
    "AGGREGATE",
    "FunctionTable",
    "get_default_functions",
    "reset_default_functions",
    "register_function",
    "register_filter",
    "register_transform",
    "register_aggregate",
]
