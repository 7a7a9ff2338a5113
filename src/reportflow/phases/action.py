"""
Action phase: dispatch the actions bound to a lifecycle event.

Each action runs independently. A failing action is logged and recorded
in its ``ActionResult``; it never stops the actions after it.
"""

from __future__ import annotations

import time
from collections.abc import Mapping

from reportflow.context import RuntimeContext
from reportflow.core.logging import LogContext, get_logger
from reportflow.phases.types import (
    ActionConfig,
    ActionContext,
    ActionEvent,
    ActionResult,
    DataResult,
    RenderResult,
)
from reportflow.registry.registries import ActionRegistry

logger = get_logger(__name__)


def _pick_render(
    action: ActionConfig, render_results: Mapping[str, RenderResult], default_mode: str
) -> RenderResult | None:
    if action.render_mode:
        return render_results.get(action.render_mode)
    return render_results.get(default_mode) or next(iter(render_results.values()), None)


async def execute_actions(
    actions: list[ActionConfig],
    event: ActionEvent | str,
    registry: ActionRegistry,
    ctx: RuntimeContext,
    data: list[DataResult] | None = None,
    render_results: Mapping[str, RenderResult] | None = None,
    default_render_mode: str = "json",
) -> list[ActionResult]:
    """Run every action whose ``on`` matches ``event``, in declaration order."""
    event = ActionEvent(event)
    renders = render_results or {}
    results: list[ActionResult] = []

    for action in actions:
        if action.on != event:
            continue

        action_ctx = ActionContext(
            runtime=ctx,
            data=list(data or []),
            render_result=_pick_render(action, renders, default_render_mode),
        )
        start = time.perf_counter()
        async with LogContext(action=action.type, event=event.value):
            try:
                await registry.execute(action.type, action.spec, action_ctx)
            except Exception as exc:
                duration_ms = int((time.perf_counter() - start) * 1000)
                logger.error(
                    "action.failed",
                    error=str(exc),
                    error_type=type(exc).__name__,
                    duration_ms=duration_ms,
                )
                results.append(ActionResult(action.type, False, duration_ms, exc))
                continue

            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info("action.complete", duration_ms=duration_ms)
            results.append(ActionResult(action.type, True, duration_ms))

    return results


__all__ = ["execute_actions"]
