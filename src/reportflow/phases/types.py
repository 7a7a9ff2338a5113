"""
Report configuration and phase result types.

``ExecutableConfig`` is the resolved report document after every enhance
plugin has run: the report header, the data items to fetch and the
actions to trigger. Results flow between phases as frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from pydantic import Field, model_validator

from reportflow.pipeline.types import ConfigModel, ErrorConfig, RetryConfig

if TYPE_CHECKING:
    from reportflow.context import RuntimeContext


# ── Configuration ────────────────────────────────────────────────────────


class ReportConfig(ConfigModel):
    title: str
    description: str | None = None


class DataItemConfig(ConfigModel):
    """One data item: a titled, tagged source."""

    title: str
    tag: str = ""
    source: Any
    enhance: str | None = None
    retry: RetryConfig | None = None
    timeout_ms: int | None = Field(default=None, ge=1)
    error: ErrorConfig | None = None


class ActionEvent(str, Enum):
    DATA_READY = "data_ready"
    REPORT_READY = "report_ready"
    REPORT_ARCHIVED = "report_archived"


class ActionConfig(ConfigModel):
    type: str
    on: ActionEvent
    render_mode: str | None = None
    spec: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _yaml_on_key(cls, data: Any) -> Any:
        # YAML 1.1 loads a bare `on` key as the boolean True
        if isinstance(data, dict) and True in data and "on" not in data:
            data = {("on" if k is True else k): v for k, v in data.items()}
        return data


class ExecutableConfig(ConfigModel):
    report: ReportConfig
    data: list[DataItemConfig] = Field(default_factory=list)
    actions: list[ActionConfig] = Field(default_factory=list)
    meta: dict[str, Any] = Field(default_factory=dict)


# ── Results ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class DataResult:
    title: str
    tag: str
    data: Any
    meta: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "tag": self.tag, "data": self.data, "meta": self.meta}


@dataclass(frozen=True)
class RenderResult:
    render_mode: str
    content: str
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ActionContext:
    """Read-only view handed to action plugins."""

    runtime: RuntimeContext
    data: list[DataResult]
    render_result: RenderResult | None = None


@dataclass(frozen=True)
class ActionResult:
    type: str
    success: bool
    duration_ms: int
    error: BaseException | None = None


__all__ = [
    "ReportConfig",
    "DataItemConfig",
    "ActionEvent",
    "ActionConfig",
    "ExecutableConfig",
    "DataResult",
    "RenderResult",
    "ActionContext",
    "ActionResult",
]
