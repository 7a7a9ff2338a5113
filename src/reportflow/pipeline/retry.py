"""Retry strategies with fixed or exponential backoff.

Provides bounded re-invocation for fetch units.

``max_retries`` counts retries, not attempts: ``max_retries=3`` allows four
attempts. The retry index is 0-based, so the first retry waits
``backoff_ms`` and exponential backoff doubles from there.

Example:
    >>> from reportflow.pipeline.retry import ExponentialBackoff
    >>>
    >>> strategy = ExponentialBackoff(max_retries=3, base_delay_ms=100)
    >>> [strategy.next_delay_ms(i) for i in range(3)]
    [100, 200, 400]
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from reportflow.pipeline.types import RetryConfig

T = TypeVar("T")


class RetryStrategy(ABC):
    """Abstract base for retry strategies."""

    max_retries: int = 0

    @abstractmethod
    def next_delay_ms(self, retry: int) -> int:
        """Delay in milliseconds before retry number ``retry`` (0-based)."""
        ...

    def should_retry(self, retry: int, error: BaseException | None = None) -> bool:
        """True while retry number ``retry`` (0-based) is within budget."""
        return retry < self.max_retries


@dataclass
class ExponentialBackoff(RetryStrategy):
    """Delay = base_delay_ms * multiplier ** retry."""

    max_retries: int = 3
    base_delay_ms: int = 1000
    multiplier: int = 2

    def next_delay_ms(self, retry: int) -> int:
        return self.base_delay_ms * (self.multiplier ** retry)


@dataclass
class ConstantBackoff(RetryStrategy):
    """Constant delay between retries."""

    max_retries: int = 3
    delay_ms: int = 1000

    def next_delay_ms(self, retry: int) -> int:
        return self.delay_ms


@dataclass
class NoRetry(RetryStrategy):
    """No retry - fail immediately."""

    max_retries: int = 0

    def next_delay_ms(self, retry: int) -> int:
        return 0

    def should_retry(self, retry: int, error: BaseException | None = None) -> bool:
        return False


def strategy_from_config(config: RetryConfig | None) -> RetryStrategy:
    """Build the strategy a ``RetryConfig`` describes (absent = no retry)."""
    if config is None or config.max_retries == 0:
        return NoRetry()
    if config.exponential:
        return ExponentialBackoff(max_retries=config.max_retries, base_delay_ms=config.backoff_ms)
    return ConstantBackoff(max_retries=config.max_retries, delay_ms=config.backoff_ms)


@dataclass
class RetryContext:
    """Tracks retry state for one execution.

    Example:
        >>> ctx = RetryContext(ExponentialBackoff(max_retries=3, base_delay_ms=100))
        >>> data = await ctx.run_async(fetch_once)
        >>> ctx.attempts
        1
    """

    strategy: RetryStrategy
    on_retry: Callable[[int, BaseException, int], None] | None = None
    attempts: int = field(default=0, init=False)
    last_error: BaseException | None = field(default=None, init=False)
    errors: list[BaseException] = field(default_factory=list, init=False)

    async def run_async(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Await ``func`` until it succeeds or the retry budget is spent.

        Raises:
            The last attempt's exception once retries are exhausted.
        """
        while True:
            self.attempts += 1
            try:
                return await func(*args, **kwargs)
            except Exception as e:
                self.last_error = e
                self.errors.append(e)

                retry = self.attempts - 1
                if not self.strategy.should_retry(retry, e):
                    raise

                delay_ms = self.strategy.next_delay_ms(retry)
                if self.on_retry:
                    self.on_retry(self.attempts, e, delay_ms)

                if delay_ms > 0:
                    await asyncio.sleep(delay_ms / 1000)


__all__ = [
    "RetryStrategy",
    "ExponentialBackoff",
    "ConstantBackoff",
    "NoRetry",
    "RetryContext",
    "strategy_from_config",
]
