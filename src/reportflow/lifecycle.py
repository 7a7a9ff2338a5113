"""
Report lifecycle — drive one report config through every phase.

ARCHITECTURE
────────────
::

    ExecutableConfig
      │
      ▼
    enhance   (fold through enhance plugins)
      │
      ▼
    data      (fetch every item, fail fast)
      │
      ▼
    render    (only when a report_ready action exists)
      │
      ▼
    actions   data_ready, then report_ready (failures captured)
      │
      ▼
    LifecycleReport

Tags:
    lifecycle, orchestration, reportflow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from reportflow.context import RuntimeContext
from reportflow.core.logging import LogContext, get_logger
from reportflow.phases.action import execute_actions
from reportflow.phases.data import fetch_all_data
from reportflow.phases.enhance import apply_enhances
from reportflow.phases.render import render_reports
from reportflow.phases.types import (
    ActionEvent,
    ActionResult,
    DataResult,
    ExecutableConfig,
    RenderResult,
)

logger = get_logger(__name__)

DEFAULT_RENDER_MODE = "json"


@dataclass(frozen=True)
class LifecycleReport:
    """Everything a lifecycle run produced."""

    config: ExecutableConfig
    data: list[DataResult]
    renders: dict[str, RenderResult] = field(default_factory=dict)
    actions: list[ActionResult] = field(default_factory=list)
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return all(a.success for a in self.actions)

    @property
    def failed_actions(self) -> list[ActionResult]:
        return [a for a in self.actions if not a.success]

    def to_dict(self) -> dict[str, Any]:
        return {
            "report": self.config.report.model_dump(exclude_none=True),
            "success": self.success,
            "duration_ms": self.duration_ms,
            "data": [d.to_dict() for d in self.data],
            "renders": {mode: len(r.content) for mode, r in self.renders.items()},
            "actions": [
                {
                    "type": a.type,
                    "success": a.success,
                    "duration_ms": a.duration_ms,
                    "error": str(a.error) if a.error else None,
                }
                for a in self.actions
            ],
        }


def render_modes_for(config: ExecutableConfig, default_mode: str = DEFAULT_RENDER_MODE) -> list[str]:
    """Distinct render modes required by ``report_ready`` actions."""
    modes = [
        action.render_mode or default_mode
        for action in config.actions
        if action.on == ActionEvent.REPORT_READY
    ]
    return list(dict.fromkeys(modes))


class ReportLifecycle:
    def __init__(self, ctx: RuntimeContext, default_render_mode: str = DEFAULT_RENDER_MODE):
        self.ctx = ctx
        self.default_render_mode = default_render_mode

    async def run(self, config: ExecutableConfig) -> LifecycleReport:
        start = time.perf_counter()
        registries = self.ctx.registries

        async with LogContext(report=config.report.title, run_date=self.ctx.date_context.raw_date):
            logger.info("lifecycle.started", items=len(config.data), actions=len(config.actions))

            config = apply_enhances(config, registries.enhance, self.ctx)
            data = await fetch_all_data(config, registries.data, self.ctx)

            renders: dict[str, RenderResult] = {}
            modes = render_modes_for(config, self.default_render_mode)
            if modes:
                renders = await render_reports(config, data, registries.render, self.ctx, modes)

            actions = await execute_actions(
                config.actions, ActionEvent.DATA_READY, registries.action, self.ctx, data
            )
            actions += await execute_actions(
                config.actions,
                ActionEvent.REPORT_READY,
                registries.action,
                self.ctx,
                data,
                renders,
                default_render_mode=self.default_render_mode,
            )

            report = LifecycleReport(
                config=config,
                data=data,
                renders=renders,
                actions=actions,
                duration_ms=int((time.perf_counter() - start) * 1000),
            )
            logger.info(
                "lifecycle.complete",
                success=report.success,
                failed_actions=len(report.failed_actions),
                duration_ms=report.duration_ms,
            )
        return report


__all__ = ["LifecycleReport", "ReportLifecycle", "render_modes_for"]
