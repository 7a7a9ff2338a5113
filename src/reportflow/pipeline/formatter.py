"""
Payload reshaping.

``json`` parses text and optionally projects ``array_path``; ``csv``
parses delimited text into records. ``xml`` and ``html`` are
pass-throughs, and ``custom`` applies a named transform when one
resolves. Pass-through modes hand the payload on untouched; nothing is
dropped.
"""

from __future__ import annotations

import csv
import io
import json
from typing import Any

from reportflow.core.errors import FormatError
from reportflow.pipeline.functions import TRANSFORM, FunctionTable, get_default_functions
from reportflow.pipeline.paths import MISSING, get_by_path
from reportflow.pipeline.types import FormatterConfig, FormatterType


class Formatter:
    """Applies a ``FormatterConfig`` to a raw payload."""

    def __init__(self, config: FormatterConfig, functions: FunctionTable | None = None):
        self.config = config
        self.functions = functions

    @property
    def options(self):
        return self.config.options

    def format(self, data: Any) -> Any:
        kind = self.config.type
        if kind == FormatterType.JSON:
            return self._format_json(data)
        if kind == FormatterType.CSV:
            return self._format_csv(data)
        if kind == FormatterType.CUSTOM:
            return self._format_custom(data)
        # xml / html
        return data

    def _format_json(self, data: Any) -> Any:
        if isinstance(data, (str, bytes, bytearray)):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                raise FormatError(f"Failed to parse JSON: {exc}", cause=exc) from exc

        if self.options.array_path:
            projected = get_by_path(data, self.options.array_path)
            return None if projected is MISSING else projected
        return data

    def _format_csv(self, data: Any) -> list[Any]:
        if isinstance(data, (bytes, bytearray)):
            data = data.decode("utf-8")
        elif not isinstance(data, str):
            data = str(data)

        # from_line is 1-based and counts physical lines, blank ones included
        if self.options.from_line > 1:
            data = "".join(data.splitlines(keepends=True)[self.options.from_line - 1:])

        try:
            reader = csv.reader(io.StringIO(data), delimiter=self.options.delimiter)
            rows = [row for row in reader if any(cell.strip() for cell in row)]
        except csv.Error as exc:
            raise FormatError(f"Failed to parse CSV: {exc}", cause=exc) from exc

        headers = self.options.headers
        if headers is False:
            return rows
        if headers is True:
            if not rows:
                return []
            headers, rows = rows[0], rows[1:]
        return [dict(zip(headers, row)) for row in rows]

    def _format_custom(self, data: Any) -> Any:
        functions = self.functions or get_default_functions()
        fn = functions.resolve(TRANSFORM, self.options.transform_fn)
        if fn is None:
            return data
        try:
            return fn(data)
        except Exception as exc:
            raise FormatError(
                f"Custom transform {self.options.transform_fn!r} failed: {exc}", cause=exc
            ) from exc


__all__ = ["Formatter"]
