"""Built-in render plugin: serialises data results as a JSON document."""

from __future__ import annotations

import json

from reportflow.context import RuntimeContext
from reportflow.core.versioning import CONTRACTS_VERSION
from reportflow.phases.types import DataResult, ExecutableConfig, RenderResult
from reportflow.registry.plugins import PluginDescriptor, PluginPhase


class JsonRenderPlugin:
    mode = "json"
    descriptor = PluginDescriptor(
        name="json-render",
        version=CONTRACTS_VERSION,
        compatible_contracts="^1.0.0",
        phase=PluginPhase.RENDER,
    )

    def __init__(self, indent: int | None = 2):
        self.indent = indent

    async def render(
        self, data: list[DataResult], config: ExecutableConfig, ctx: RuntimeContext
    ) -> RenderResult:
        document = {
            "report": config.report.model_dump(exclude_none=True),
            "date": ctx.date_context.raw_date,
            "data": [item.to_dict() for item in data],
        }
        content = json.dumps(document, indent=self.indent, ensure_ascii=False, default=str)
        return RenderResult(render_mode=self.mode, content=content, meta={"items": len(data)})


def render_plugins() -> list[JsonRenderPlugin]:
    return [JsonRenderPlugin()]


__all__ = ["JsonRenderPlugin", "render_plugins"]
