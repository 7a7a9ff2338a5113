"""Built-in enhance plugin: resolves ``{{YYYY}}``-style date placeholders."""

from __future__ import annotations

from typing import Any

from reportflow.context import DateContext, RuntimeContext
from reportflow.core.versioning import CONTRACTS_VERSION
from reportflow.phases.types import ExecutableConfig
from reportflow.registry.plugins import PluginDescriptor, PluginPhase


def _substitute(value: Any, dates: DateContext) -> Any:
    if isinstance(value, str):
        return dates.render(value)
    if isinstance(value, list):
        return [_substitute(v, dates) for v in value]
    if isinstance(value, dict):
        return {k: _substitute(v, dates) for k, v in value.items()}
    return value


class TemplateEnhancePlugin:
    """Replaces date placeholders in every string of the config."""

    descriptor = PluginDescriptor(
        name="template",
        version=CONTRACTS_VERSION,
        compatible_contracts="^1.0.0",
        phase=PluginPhase.ENHANCE,
    )

    def apply(self, config: ExecutableConfig, ctx: RuntimeContext) -> ExecutableConfig:
        document = _substitute(config.model_dump(), ctx.date_context)
        return ExecutableConfig.model_validate(document)


def enhance_plugins() -> list[TemplateEnhancePlugin]:
    return [TemplateEnhancePlugin()]


__all__ = ["TemplateEnhancePlugin", "enhance_plugins"]
