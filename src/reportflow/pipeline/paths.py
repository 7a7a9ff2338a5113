"""Dot-path lookup over nested mappings and sequences."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: _Missing | None = None

    def __new__(cls) -> _Missing:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


def get_by_path(data: Any, path: str | None) -> Any:
    """Resolve ``a.b.0.c`` against ``data``.

    Numeric segments index into sequences. Any unresolved segment yields
    ``MISSING``; lookup never raises. An empty path returns ``data``.
    """
    if not path:
        return data

    current = data
    for segment in path.split("."):
        if current is MISSING or current is None:
            return MISSING
        if isinstance(current, Mapping):
            if segment not in current:
                return MISSING
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError):
                return MISSING
        else:
            return MISSING
    return current


def is_sequence(value: Any) -> bool:
    """True for list-like values (not strings, bytes or mappings)."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


__all__ = ["MISSING", "get_by_path", "is_sequence"]
