"""
Error policy: maps a terminal fetch failure to an outcome.

    throw    re-raise to the caller
    skip     success=False, data=None
    default  success=True,  data=default_value
    retry    same as skip; retries are already exhausted by the time the
             policy is consulted
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from reportflow.core.errors import ReportflowError
from reportflow.core.logging import get_logger
from reportflow.pipeline.types import ErrorConfig, ErrorStrategy

logger = get_logger(__name__)


@dataclass(frozen=True)
class ErrorOutcome:
    success: bool
    data: Any = None


class ErrorPolicy:
    """Applies an ``ErrorConfig`` to a failure."""

    def __init__(self, config: ErrorConfig | None = None):
        self.config = config or ErrorConfig()

    @property
    def strategy(self) -> ErrorStrategy:
        return self.config.strategy

    def handle(self, error: BaseException, *, fetcher_id: str) -> ErrorOutcome:
        """Return the outcome for ``error``, or re-raise it for ``throw``."""
        if self.config.log_error:
            fields: dict[str, Any] = {}
            if isinstance(error, ReportflowError):
                fields = error.context.to_dict()
            fields.update(
                fetcher_id=fetcher_id,
                strategy=self.strategy.value,
                error=str(error),
                error_type=type(error).__name__,
            )
            logger.warning("fetch.failed", **fields)

        if self.strategy == ErrorStrategy.THROW:
            raise error
        if self.strategy == ErrorStrategy.DEFAULT:
            return ErrorOutcome(success=True, data=self.config.default_value)
        return ErrorOutcome(success=False, data=None)


__all__ = ["ErrorOutcome", "ErrorPolicy"]
