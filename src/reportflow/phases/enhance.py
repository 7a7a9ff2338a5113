"""Enhance phase: fold the raw config through every enhance plugin."""

from __future__ import annotations

from reportflow.context import RuntimeContext
from reportflow.core.logging import get_logger
from reportflow.phases.types import ExecutableConfig
from reportflow.registry.registries import EnhanceRegistry

logger = get_logger(__name__)


def apply_enhances(
    config: ExecutableConfig, registry: EnhanceRegistry, ctx: RuntimeContext
) -> ExecutableConfig:
    enhanced = registry.apply_all(config, ctx)
    logger.debug("enhance.complete", plugins=registry.size(), items=len(enhanced.data))
    return enhanced


__all__ = ["apply_enhances"]
