"""
Runtime context built once at bootstrap.

``RuntimeContext`` is read-only for the rest of the run. Every phase
receives it; none may replace anything in it.

Examples:
    >>> ctx = build_date_context("2026-01-31")
    >>> ctx.yyyymmdd, ctx.yymmdd, ctx.mmdd
    ('20260131', '260131', '0131')
    >>> ctx.render("sales-{{YYYYMMDD}}.html")
    'sales-20260131.html'
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from types import MappingProxyType
from typing import Any

from reportflow.core.errors import InvalidConfigError
from reportflow.core.settings import ReportflowSettings
from reportflow.pipeline.functions import FunctionTable
from reportflow.registry.registries import Registries
from reportflow.resources import ResourcePool

_PLACEHOLDER = re.compile(r"\{\{\s*(rawDate|YYYYMMDD|YYMMDD|MMDD|YYYY|YY|MM|DD)\s*\}\}")


@dataclass(frozen=True)
class DateContext:
    raw_date: str
    yyyy: str
    yy: str
    mm: str
    dd: str
    yyyymmdd: str
    yymmdd: str
    mmdd: str

    def placeholders(self) -> dict[str, str]:
        return {
            "rawDate": self.raw_date,
            "YYYY": self.yyyy,
            "YY": self.yy,
            "MM": self.mm,
            "DD": self.dd,
            "YYYYMMDD": self.yyyymmdd,
            "YYMMDD": self.yymmdd,
            "MMDD": self.mmdd,
        }

    def render(self, template: str) -> str:
        """Replace ``{{YYYY}}``-style placeholders in ``template``."""
        values = self.placeholders()
        return _PLACEHOLDER.sub(lambda m: values[m.group(1)], template)


def build_date_context(value: str | date | None = None) -> DateContext:
    """Build the date context for ``value`` (YYYY-MM-DD), defaulting to today."""
    if value is None:
        day = date.today()
    elif isinstance(value, datetime):
        day = value.date()
    elif isinstance(value, date):
        day = value
    else:
        try:
            day = date.fromisoformat(value.strip())
        except ValueError as exc:
            raise InvalidConfigError("date", value, f"Invalid date {value!r}, expected YYYY-MM-DD") from exc

    raw = day.isoformat()
    yyyy, mm, dd = raw.split("-")
    yy = yyyy[-2:]
    return DateContext(
        raw_date=raw,
        yyyy=yyyy,
        yy=yy,
        mm=mm,
        dd=dd,
        yyyymmdd=f"{yyyy}{mm}{dd}",
        yymmdd=f"{yy}{mm}{dd}",
        mmdd=f"{mm}{dd}",
    )


@dataclass(frozen=True)
class RuntimeContext:
    """Everything a phase may read during a run."""

    settings: ReportflowSettings
    date_context: DateContext
    registries: Registries
    resources: ResourcePool
    functions: FunctionTable
    cli_args: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "cli_args", MappingProxyType(dict(self.cli_args)))


__all__ = ["DateContext", "RuntimeContext", "build_date_context"]
