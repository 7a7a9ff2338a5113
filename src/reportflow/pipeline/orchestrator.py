"""Pipeline Orchestrator — runs fetch units and aggregates their results.

WHY
───
A report usually needs several data items fetched together and combined
into one dataset. ``DataPipeline`` owns the registered fetch units and
runs them, sequentially or in bounded parallel windows, then aggregates
and post-processes. Unit failures are collected rather than propagated;
the aggregate only raises when nothing usable came back.

ARCHITECTURE
────────────
::

    DataPipeline
      ├── .register_fetcher(config)   ─ build FetchUnit from FetcherConfig
      ├── .register_unit(unit)        ─ install a prebuilt FetchUnit
      ├── .execute_fetcher(id)        ─ run one unit
      └── .execute_aggregate(config)
            1. resolve every id         (FetcherNotFoundError before any run)
            2. run units
                 parallel:   windows of max_parallel, asyncio.gather
                             (return_exceptions=True), window k settles
                             before window k+1 starts
                 sequential: one at a time, raised errors captured
            3. aggregate                (concat / merge / custom)
            4. post-process             filter → format → sort → offset/limit
            5. final policy             raise first error when no data

    Result order always follows the ``fetchers`` list, never completion
    order.

Related modules:
    fetcher.py    — FetchUnit
    aggregator.py — concat / merge / custom

Example::

    pipeline = DataPipeline()
    pipeline.register_fetcher({"id": "a", "source": {"type": "inline", "value": [1, 2]}})
    pipeline.register_fetcher({"id": "b", "source": {"type": "inline", "value": 3}})
    result = await pipeline.execute_aggregate({"fetchers": ["a", "b"], "strategy": "concat"})
    result.data  # [1, 2, 3]
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Mapping
from typing import Any

from reportflow.core.errors import AggregationError, DuplicateFetcherError, FetcherNotFoundError
from reportflow.core.logging import LogContext, get_logger
from reportflow.pipeline.aggregator import aggregate
from reportflow.pipeline.fetcher import FetchUnit
from reportflow.pipeline.filter import DataFilter
from reportflow.pipeline.formatter import Formatter
from reportflow.pipeline.functions import AGGREGATE, FunctionTable, get_default_functions
from reportflow.pipeline.paths import MISSING, get_by_path, is_sequence
from reportflow.pipeline.types import (
    AggregateConfig,
    ErrorConfig,
    ErrorStrategy,
    FetcherConfig,
    PipelineResult,
    PipelineResultMetadata,
    PostProcessConfig,
    SortConfig,
    SortOrder,
)
from reportflow.resources import ResourcePool

logger = get_logger(__name__)

AGGREGATE_ID = "aggregate"
DEFAULT_MAX_PARALLEL = 5

Outcome = PipelineResult | Exception


# ── Post-processing helpers ──────────────────────────────────────────────


def _sort_key(value: Any) -> tuple[int, Any, str]:
    # numbers before strings before anything else; never compares across kinds
    if isinstance(value, (int, float)):
        return (0, value, "")
    if isinstance(value, str):
        return (1, 0, value)
    return (2, 0, repr(value))


def sort_records(data: list[Any], sort: SortConfig) -> list[Any]:
    """Stable sort by ``sort.field``; records missing the field go last."""
    present = []
    missing = []
    for item in data:
        value = get_by_path(item, sort.field)
        if value is MISSING or value is None:
            missing.append(item)
        else:
            present.append((value, item))

    ordered = sorted(
        present,
        key=lambda pair: _sort_key(pair[0]),
        reverse=sort.order == SortOrder.DESC,
    )
    return [item for _, item in ordered] + missing


def paginate(data: list[Any], offset: int | None, limit: int | None) -> list[Any]:
    start = offset or 0
    end = start + limit if limit is not None else None
    return list(data)[start:end]


def _is_empty(data: Any) -> bool:
    if data is None:
        return True
    if is_sequence(data) or isinstance(data, Mapping):
        return len(data) == 0
    return False


# ── Orchestrator ─────────────────────────────────────────────────────────


class DataPipeline:
    """Owns fetch units and executes aggregates over them.

    Parameters
    ----------
    resources : ResourcePool, optional
        Shared clients handed to every unit built by ``register_fetcher``.
    functions : FunctionTable, optional
        Named custom filters, transforms and aggregate functions.
    default_max_parallel : int
        Window size when an aggregate sets no ``max_parallel``.
    default_timeout_ms : int, optional
        Per-attempt deadline for units whose config sets none.
    """

    def __init__(
        self,
        *,
        resources: ResourcePool | None = None,
        functions: FunctionTable | None = None,
        default_max_parallel: int = DEFAULT_MAX_PARALLEL,
        default_timeout_ms: int | None = None,
    ) -> None:
        self.resources = resources or ResourcePool()
        self.functions = functions
        self.default_max_parallel = default_max_parallel
        self.default_timeout_ms = default_timeout_ms
        self._units: dict[str, FetchUnit] = {}

    # ── Registration ─────────────────────────────────────────────────

    def register_fetcher(self, config: FetcherConfig | Mapping[str, Any]) -> FetchUnit:
        """Build and install a ``FetchUnit`` for ``config``."""
        if not isinstance(config, FetcherConfig):
            config = FetcherConfig.model_validate(config)
        unit = FetchUnit(
            config,
            resources=self.resources,
            functions=self.functions,
            default_timeout_ms=self.default_timeout_ms,
        )
        self.register_unit(unit)
        return unit

    def register_unit(self, unit: FetchUnit) -> None:
        if unit.id in self._units:
            raise DuplicateFetcherError(unit.id)
        self._units[unit.id] = unit
        logger.debug("pipeline.fetcher_registered", fetcher_id=unit.id, kind=unit.kind.value)

    def get_fetcher(self, fetcher_id: str) -> FetchUnit:
        try:
            return self._units[fetcher_id]
        except KeyError:
            raise FetcherNotFoundError(fetcher_id) from None

    def fetcher_ids(self) -> list[str]:
        return list(self._units)

    def __contains__(self, fetcher_id: object) -> bool:
        return fetcher_id in self._units

    def __len__(self) -> int:
        return len(self._units)

    # ── Execution ────────────────────────────────────────────────────

    async def execute_fetcher(self, fetcher_id: str) -> PipelineResult:
        """Run one unit. Raises ``FetcherNotFoundError`` for unknown ids."""
        return await self.get_fetcher(fetcher_id).execute()

    async def execute_aggregate(self, config: AggregateConfig | Mapping[str, Any]) -> PipelineResult:
        """Run the configured units, aggregate and post-process.

        Raises:
            FetcherNotFoundError: an id in ``config.fetchers`` is unknown
            Exception: the first collected error, when no data resulted and
                the post-process error policy does not absorb it
        """
        if not isinstance(config, AggregateConfig):
            config = AggregateConfig.model_validate(config)

        timestamp_ms = int(time.time() * 1000)
        started = time.perf_counter()
        units = [self.get_fetcher(fid) for fid in config.fetchers]

        async with LogContext(aggregate_id=AGGREGATE_ID):
            logger.info(
                "aggregate.start",
                fetchers=len(units),
                strategy=config.strategy.value,
                parallel=config.parallel,
            )

            if config.parallel:
                window = config.max_parallel or self.default_max_parallel
                outcomes = await self._run_parallel(units, window)
            else:
                outcomes = await self._run_sequential(units)

            results: list[PipelineResult] = []
            errors: list[BaseException] = []
            for outcome in outcomes:
                if isinstance(outcome, PipelineResult):
                    results.append(outcome)
                    errors.extend(outcome.errors)
                else:
                    errors.append(outcome)

            data: Any = None
            try:
                data = aggregate(results, config.strategy, self._resolve_aggregate_fn(config))
            except AggregationError as exc:
                errors.append(exc)

            post = config.post_process
            if post is not None and data is not None:
                try:
                    data = self._post_process(data, post)
                except Exception as exc:
                    logger.warning("aggregate.post_process_failed", error=str(exc))
                    errors.append(exc)

            result = self._finalize(data, errors, post, timestamp_ms, started, len(outcomes))
            logger.info(
                "aggregate.complete",
                success=result.success,
                errors=len(result.errors),
                duration_ms=result.metadata.duration_ms,
            )
            return result

    async def _run_sequential(self, units: list[FetchUnit]) -> list[Outcome]:
        outcomes: list[Outcome] = []
        for unit in units:
            try:
                outcomes.append(await unit.execute())
            except Exception as exc:
                logger.warning("aggregate.unit_failed", fetcher_id=unit.id, error=str(exc))
                outcomes.append(exc)
        return outcomes

    async def _run_parallel(self, units: list[FetchUnit], window: int) -> list[Outcome]:
        outcomes: list[Outcome] = []
        for index, start in enumerate(range(0, len(units), window)):
            batch = units[start:start + window]
            settled = await asyncio.gather(
                *(unit.execute() for unit in batch),
                return_exceptions=True,
            )
            for unit, outcome in zip(batch, settled):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                if isinstance(outcome, Exception):
                    logger.warning("aggregate.unit_failed", fetcher_id=unit.id, error=str(outcome))
                outcomes.append(outcome)
            logger.debug("aggregate.window_complete", window=index, size=len(batch))
        return outcomes

    def _resolve_aggregate_fn(self, config: AggregateConfig):
        functions = self.functions or get_default_functions()
        return functions.resolve(AGGREGATE, config.custom_fn)

    def _post_process(self, data: Any, post: PostProcessConfig) -> Any:
        if post.filter is not None:
            data = DataFilter(post.filter, self.functions).apply(data)
        if post.formatter is not None:
            data = Formatter(post.formatter, self.functions).format(data)
        if post.sort is not None and is_sequence(data):
            data = sort_records(data, post.sort)
        if (post.offset is not None or post.limit is not None) and is_sequence(data):
            data = paginate(data, post.offset, post.limit)
        return data

    def _finalize(
        self,
        data: Any,
        errors: list[BaseException],
        post: PostProcessConfig | None,
        timestamp_ms: int,
        started: float,
        attempts: int,
    ) -> PipelineResult:
        policy: ErrorConfig | None = post.error if post is not None else None
        success = not errors

        if errors and _is_empty(data):
            if policy is None or policy.strategy == ErrorStrategy.THROW:
                raise errors[0]
            if policy.log_error:
                logger.warning("aggregate.no_data", strategy=policy.strategy.value, error=str(errors[0]))
            if policy.strategy == ErrorStrategy.DEFAULT:
                data, success = policy.default_value, True
            else:
                data = None

        duration_ms = int((time.perf_counter() - started) * 1000)
        return PipelineResult(
            success=success,
            data=data,
            errors=list(errors),
            metadata=PipelineResultMetadata(
                fetcher_id=AGGREGATE_ID,
                timestamp_ms=timestamp_ms,
                duration_ms=duration_ms,
                success=success,
                attempts=attempts,
            ),
        )


__all__ = ["DataPipeline", "sort_records", "paginate", "AGGREGATE_ID"]
