"""Fetch Unit — one retryable, policy-governed data retrieval.

WHY
───
Every data item in a report goes through the same steps: fetch raw
payload, retry on failure, reshape, filter, and decide what a failure
means. ``FetchUnit`` composes those steps around the raw fetch coroutine
for its source kind so that sources only implement I/O.

ARCHITECTURE
────────────
::

    FetchUnit.execute()
      │
      ├── RetryContext.run_async(_attempt)      pending → fetching
      │     └── raw_fetch(source, resources)    (asyncio.timeout per attempt)
      │           fail, retries left  ────────► retrying → fetching
      │
      ├── Formatter.format → DataFilter.apply   succeeded
      │
      └── on failure: ErrorPolicy.handle
            throw            ────────────────► failed_thrown (re-raised)
            skip/default/retry ──────────────► failed_handled

    Every returned result carries PipelineResultMetadata
    (timestamp_ms, duration_ms, attempts).

Related modules:
    retry.py        — RetryStrategy / RetryContext
    error_policy.py — strategy → outcome
    sources.py      — SourceKind → raw fetch table
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

from reportflow.core.errors import FetchTimeoutError, ReportflowError
from reportflow.core.logging import LogContext, get_logger
from reportflow.pipeline.error_policy import ErrorPolicy
from reportflow.pipeline.filter import DataFilter
from reportflow.pipeline.formatter import Formatter
from reportflow.pipeline.functions import FunctionTable
from reportflow.pipeline.retry import RetryContext, RetryStrategy, strategy_from_config
from reportflow.pipeline.sources import RawFetch, SourceKind, resolve_raw_fetch
from reportflow.pipeline.types import (
    FetcherConfig,
    FetchState,
    PipelineResult,
    PipelineResultMetadata,
)
from reportflow.resources import ResourcePool

logger = get_logger(__name__)


class FetchUnit:
    """Executes one ``FetcherConfig``.

    Parameters
    ----------
    config : FetcherConfig
        Source, processing, retry and error configuration.
    resources : ResourcePool, optional
        Shared HTTP clients and database engines.
    functions : FunctionTable, optional
        Named custom filters and transforms.
    raw_fetch : RawFetch, optional
        Overrides the table entry for the source kind.
    default_timeout_ms : int, optional
        Per-attempt deadline used when the config sets none.
    """

    def __init__(
        self,
        config: FetcherConfig,
        *,
        resources: ResourcePool | None = None,
        functions: FunctionTable | None = None,
        raw_fetch: RawFetch | None = None,
        default_timeout_ms: int | None = None,
    ) -> None:
        self.config = config
        self.kind = SourceKind(config.source.type)
        self.resources = resources or ResourcePool()
        self.retry_strategy: RetryStrategy = strategy_from_config(config.retry)
        self.error_policy = ErrorPolicy(config.process.error)
        self.timeout_ms = config.timeout_ms if config.timeout_ms is not None else default_timeout_ms
        self.state = FetchState.PENDING

        self._raw_fetch = raw_fetch or resolve_raw_fetch(self.kind)

        process = config.process
        self.formatter = Formatter(process.formatter, functions) if process.formatter else None
        self.filter = DataFilter(process.filter, functions) if process.filter else None

    @property
    def id(self) -> str:
        return self.config.id

    # ── Execution ────────────────────────────────────────────────────

    async def execute(self) -> PipelineResult:
        """Fetch, process and apply the error policy.

        Raises:
            The terminal error when the error strategy is ``throw``.
        """
        timestamp_ms = int(time.time() * 1000)
        started = time.perf_counter()
        retry = RetryContext(self.retry_strategy, on_retry=self._on_retry)

        async with LogContext(fetcher_id=self.id):
            try:
                raw = await retry.run_async(self._attempt)
                data = self._process(raw)
            except Exception as exc:
                duration_ms = _elapsed_ms(started)
                try:
                    outcome = self.error_policy.handle(exc, fetcher_id=self.id)
                except Exception:
                    self.state = FetchState.FAILED_THROWN
                    if isinstance(exc, ReportflowError):
                        exc.with_context(fetcher_id=self.id, attempts=retry.attempts, duration_ms=duration_ms)
                    raise
                self.state = FetchState.FAILED_HANDLED
                return self._result(
                    outcome.success, outcome.data, [exc], timestamp_ms, duration_ms, retry.attempts
                )

            self.state = FetchState.SUCCEEDED
            duration_ms = _elapsed_ms(started)
            logger.debug("fetch.succeeded", attempts=retry.attempts, duration_ms=duration_ms)
            return self._result(True, data, [], timestamp_ms, duration_ms, retry.attempts)

    async def _attempt(self) -> Any:
        self.state = FetchState.FETCHING
        if self.timeout_ms is None:
            return await self._raw_fetch(self.config.source, self.resources)
        try:
            async with asyncio.timeout(self.timeout_ms / 1000):
                return await self._raw_fetch(self.config.source, self.resources)
        except TimeoutError as exc:
            raise FetchTimeoutError(self.id, self.timeout_ms) from exc

    def _on_retry(self, attempt: int, error: BaseException, delay_ms: int) -> None:
        self.state = FetchState.RETRYING
        logger.info(
            "fetch.retrying",
            attempt=attempt,
            max_retries=self.retry_strategy.max_retries,
            delay_ms=delay_ms,
            error=str(error),
        )

    def _process(self, data: Any) -> Any:
        if self.formatter is not None:
            data = self.formatter.format(data)
        if self.filter is not None:
            data = self.filter.apply(data)
        return data

    def _result(
        self,
        success: bool,
        data: Any,
        errors: list[BaseException],
        timestamp_ms: int,
        duration_ms: int,
        attempts: int,
    ) -> PipelineResult:
        return PipelineResult(
            success=success,
            data=data,
            errors=errors,
            metadata=PipelineResultMetadata(
                fetcher_id=self.id,
                timestamp_ms=timestamp_ms,
                duration_ms=duration_ms,
                success=success,
                attempts=attempts,
            ),
        )

    def __repr__(self) -> str:
        return f"FetchUnit(id={self.id!r}, kind={self.kind.value}, state={self.state.value})"


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


__all__ = ["FetchUnit"]
