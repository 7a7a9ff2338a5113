"""Render phase: turn data results into one document per render mode."""

from __future__ import annotations

import time
from collections.abc import Iterable

from reportflow.context import RuntimeContext
from reportflow.core.errors import ReportflowError
from reportflow.core.logging import get_logger
from reportflow.phases.types import DataResult, ExecutableConfig, RenderResult
from reportflow.registry.registries import RenderRegistry

logger = get_logger(__name__)


async def render_reports(
    config: ExecutableConfig,
    data: list[DataResult],
    registry: RenderRegistry,
    ctx: RuntimeContext,
    modes: Iterable[str],
) -> dict[str, RenderResult]:
    """Render ``data`` once per distinct mode, in first-seen order.

    Any render failure propagates; a run never continues with a partial
    set of documents.
    """
    results: dict[str, RenderResult] = {}
    for mode in dict.fromkeys(modes):
        start = time.perf_counter()
        try:
            results[mode] = await registry.render(mode, data, config, ctx)
        except Exception as exc:
            logger.error("render.failed", render_mode=mode, error=str(exc), error_type=type(exc).__name__)
            if isinstance(exc, ReportflowError):
                exc.with_context(phase="render", plugin=mode)
            raise
        logger.info(
            "render.complete",
            render_mode=mode,
            chars=len(results[mode].content),
            duration_ms=int((time.perf_counter() - start) * 1000),
        )
    return results


__all__ = ["render_reports"]
