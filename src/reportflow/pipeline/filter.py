"""
Record filtering by rule sets.

Modes:
    field   keep elements where every rule matches (AND)
    value   keep elements where any rule matches (OR)
    custom  delegate to a named predicate from the FunctionTable

Non-sequence input passes through unchanged in every mode. A rule
without ``field`` is evaluated against the element itself.

Operators:
    eq / ne             strict equality; booleans never equal numbers and
                        strings never equal numbers
    gt / lt / gte / lte numbers with numbers, strings with strings;
                        anything else (including missing) is False
    in / nin            strict membership in ``values``
    contains            substring for strings, element membership for lists
    exists              neither missing nor None
    regex               case-insensitive ``re.search`` on ``str(value)``
"""

from __future__ import annotations

import operator
import re
from typing import Any

from reportflow.core.errors import FilterError
from reportflow.pipeline.functions import FILTER, FunctionTable, get_default_functions
from reportflow.pipeline.paths import MISSING, get_by_path, is_sequence
from reportflow.pipeline.types import FilterConfig, FilterOperator, FilterRule, FilterType

_ORDERING = {
    FilterOperator.GT: operator.gt,
    FilterOperator.LT: operator.lt,
    FilterOperator.GTE: operator.ge,
    FilterOperator.LTE: operator.le,
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def strict_equal(left: Any, right: Any) -> bool:
    """Equality without bool/number or str/number coercion."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    if _is_number(left) or _is_number(right):
        return _is_number(left) and _is_number(right) and left == right
    return left == right


def _compare(op: FilterOperator, left: Any, right: Any) -> bool:
    comparable = (_is_number(left) and _is_number(right)) or (
        isinstance(left, str) and isinstance(right, str)
    )
    return comparable and _ORDERING[op](left, right)


def _contains(container: Any, needle: Any) -> bool:
    if isinstance(container, str):
        return isinstance(needle, str) and needle in container
    if is_sequence(container):
        return any(strict_equal(item, needle) for item in container)
    return False


def _regex(value: Any, pattern: str | None) -> bool:
    if value is MISSING or value is None or pattern is None:
        return False
    try:
        compiled = re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise FilterError(f"Invalid regex pattern {pattern!r}: {exc}", cause=exc) from exc
    return compiled.search(str(value)) is not None


def match_rule(item: Any, rule: FilterRule) -> bool:
    """Evaluate one rule against ``item``."""
    value = get_by_path(item, rule.field) if rule.field else item
    op = rule.operator

    if op == FilterOperator.EQ:
        return strict_equal(value, rule.value)
    if op == FilterOperator.NE:
        return not strict_equal(value, rule.value)
    if op in _ORDERING:
        return _compare(op, value, rule.value)
    if op == FilterOperator.IN:
        return rule.values is not None and any(strict_equal(value, v) for v in rule.values)
    if op == FilterOperator.NIN:
        return rule.values is None or not any(strict_equal(value, v) for v in rule.values)
    if op == FilterOperator.CONTAINS:
        return _contains(value, rule.value)
    if op == FilterOperator.EXISTS:
        return value is not MISSING and value is not None
    if op == FilterOperator.REGEX:
        return _regex(value, rule.pattern)
    return False


class DataFilter:
    """Applies a ``FilterConfig`` to fetched data."""

    def __init__(self, config: FilterConfig, functions: FunctionTable | None = None):
        self.config = config
        self.functions = functions

    def apply(self, data: Any) -> Any:
        if self.config.type == FilterType.CUSTOM:
            return self._apply_custom(data)
        if not is_sequence(data):
            return data

        rules = self.config.rules
        if self.config.type == FilterType.VALUE:
            return [item for item in data if any(match_rule(item, r) for r in rules)]
        return [item for item in data if all(match_rule(item, r) for r in rules)]

    def _apply_custom(self, data: Any) -> Any:
        functions = self.functions or get_default_functions()
        fn = functions.resolve(FILTER, self.config.custom_fn)
        if fn is None:
            return data
        try:
            return fn(data)
        except Exception as exc:
            raise FilterError(f"Custom filter {self.config.custom_fn!r} failed: {exc}", cause=exc) from exc


__all__ = ["DataFilter", "match_rule", "strict_equal"]
