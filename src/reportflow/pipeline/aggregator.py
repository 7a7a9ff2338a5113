"""
Combining fetch unit results.

    concat  flat list; sequence data is spliced in one level deep, any
            other value is appended whole
    merge   dict; mapping data is shallow-assigned (later results win),
            any other value is stored under the fetcher id
    custom  ``fn(results)``; falls back to concat without a function

Failed results and results with ``None`` data contribute nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from reportflow.core.errors import AggregationError
from reportflow.pipeline.paths import is_sequence
from reportflow.pipeline.types import AggregateStrategy, PipelineResult


def _usable(results: list[PipelineResult]) -> list[PipelineResult]:
    return [r for r in results if r.success and r.data is not None]


def concat(results: list[PipelineResult]) -> list[Any]:
    combined: list[Any] = []
    for result in _usable(results):
        if is_sequence(result.data):
            combined.extend(result.data)
        else:
            combined.append(result.data)
    return combined


def merge(results: list[PipelineResult]) -> dict[str, Any]:
    combined: dict[str, Any] = {}
    for result in _usable(results):
        if isinstance(result.data, Mapping):
            combined.update(result.data)
        else:
            combined[result.metadata.fetcher_id] = result.data
    return combined


def aggregate(
    results: list[PipelineResult],
    strategy: AggregateStrategy | str,
    custom_fn: Callable[[list[PipelineResult]], Any] | None = None,
) -> Any:
    """Combine ``results`` with ``strategy``."""
    strategy = AggregateStrategy(strategy)
    if strategy == AggregateStrategy.MERGE:
        return merge(results)
    if strategy == AggregateStrategy.CUSTOM and custom_fn is not None:
        try:
            return custom_fn(results)
        except Exception as exc:
            raise AggregationError(f"Custom aggregate function failed: {exc}", cause=exc) from exc
    return concat(results)


__all__ = ["aggregate", "concat", "merge"]
