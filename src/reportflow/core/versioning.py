"""Contracts version gate.

Plugins declare the contracts they were written against as an npm-style
range expression (``^1.0.0``, ``~1.2``, ``>=1.0.0 <2.0.0``, ``1.x || 2.x``,
``1.2.0 - 1.5.0``). A registry accepts a plugin only when its range is
satisfied by the running ``CONTRACTS_VERSION``.

Versions follow semantic-version precedence (``1.0.0-alpha < 1.0.0-alpha.1
< 1.0.0-alpha.beta < 1.0.0-beta < 1.0.0``). Prerelease versions only
satisfy a range when one of its comparators names a prerelease on the same
``major.minor.patch``, as npm does.

Examples:
    >>> satisfies("1.2.3", "^1.0.0")
    True
    >>> satisfies("2.0.0", "^1.0.0")
    False
    >>> satisfies("0.2.5", "^0.2.3")
    True
    >>> satisfies("0.3.0", "^0.2.3")
    False
"""

from __future__ import annotations

import re
from functools import lru_cache

from semantic_version import NpmSpec, Version

from reportflow.core.errors import InvalidVersionRangeError

CONTRACTS_VERSION = "1.0.0"

# ">= 1.0.0" is written ">=1.0.0" by npm's own grammar
_OPERATOR_SPACE = re.compile(r"(\^|~|>=|<=|>|<|=)\s+")


def parse_version(text: str) -> Version:
    """Parse a full semantic version (``1.2.3``, ``v1.2.3-rc.1``)."""
    if not isinstance(text, str):
        raise InvalidVersionRangeError(repr(text))
    cleaned = text.strip()
    if cleaned[:1] in ("v", "="):
        cleaned = cleaned[1:]
    try:
        return Version(cleaned)
    except ValueError as exc:
        raise InvalidVersionRangeError(text, f"Invalid semantic version {text!r}: {exc}") from exc


def _normalize(expression: str) -> str:
    sets = []
    for set_expr in expression.split("||"):
        collapsed = " ".join(set_expr.split())
        sets.append(_OPERATOR_SPACE.sub(r"\1", collapsed))
    return " || ".join(sets)


@lru_cache(maxsize=256)
def parse_range(expression: str) -> NpmSpec:
    """Parse a range expression, raising ``InvalidVersionRangeError`` if malformed."""
    if not isinstance(expression, str):
        raise InvalidVersionRangeError(repr(expression))
    try:
        return NpmSpec(_normalize(expression))
    except ValueError as exc:
        raise InvalidVersionRangeError(expression, f"Invalid range {expression!r}: {exc}") from exc


def satisfies(version: str | Version, expression: str) -> bool:
    """Return True when ``version`` falls inside ``expression``."""
    ver = version if isinstance(version, Version) else parse_version(version)
    return parse_range(expression).match(ver)


class VersionGate:
    """Checks plugin ranges against one running contracts version."""

    def __init__(self, contracts_version: str = CONTRACTS_VERSION):
        self.contracts_version = contracts_version
        self._version = parse_version(contracts_version)

    def accepts(self, compatible_contracts: str) -> bool:
        return satisfies(self._version, compatible_contracts)

    def __repr__(self) -> str:
        return f"VersionGate({self.contracts_version!r})"


__all__ = [
    "CONTRACTS_VERSION",
    "VersionGate",
    "parse_range",
    "parse_version",
    "satisfies",
]
