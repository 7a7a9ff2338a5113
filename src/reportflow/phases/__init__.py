"""Report lifecycle phases: enhance, data, render and action."""

from reportflow.phases.types import (
    ActionConfig,
    ActionContext,
    ActionEvent,
    ActionResult,
    DataItemConfig,
    DataResult,
    ExecutableConfig,
    RenderResult,
    ReportConfig,
)

__all__ = [
    "ActionConfig",
    "ActionContext",
    "ActionEvent",
    "ActionResult",
    "DataItemConfig",
    "DataResult",
    "ExecutableConfig",
    "RenderResult",
    "ReportConfig",
]
