"""
Plugin descriptors and phase protocols.

Manifesto:
    A plugin is any object that carries a ``PluginDescriptor`` and the one
    capability method its phase requires. No base class is imposed; the
    registries only read the descriptor and the phase protocols document
    the call shape.

Architecture:
    ::

        PluginDescriptor(name, version, compatible_contracts, phase)
              │
              ├── EnhancePlugin.apply(config, ctx)              -> config
              ├── DataPlugin.fetch(item, ctx)          (async)  -> DataResult
              ├── RenderPlugin.render(data, config, ctx) (async) -> RenderResult
              └── ActionPlugin.execute(payload, action_ctx) (async)

Tags:
    plugin, protocol, descriptor, phase, reportflow

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from reportflow.context import RuntimeContext
    from reportflow.phases.types import (
        ActionContext,
        DataItemConfig,
        DataResult,
        ExecutableConfig,
        RenderResult,
    )


class PluginPhase(str, Enum):
    """Stage of the report lifecycle a plugin belongs to."""

    ENHANCE = "enhance"
    DATA = "data"
    RENDER = "render"
    ACTION = "action"


@dataclass(frozen=True)
class PluginDescriptor:
    """Identity and compatibility declaration of a plugin."""

    name: str
    version: str
    compatible_contracts: str
    phase: PluginPhase

    def __post_init__(self) -> None:
        if not isinstance(self.phase, PluginPhase):
            object.__setattr__(self, "phase", PluginPhase(self.phase))

    def to_dict(self) -> dict[str, str]:
        return {
            "name": self.name,
            "version": self.version,
            "compatible_contracts": self.compatible_contracts,
            "phase": self.phase.value,
        }


def describe(plugin: Any) -> PluginDescriptor:
    """Return the descriptor of ``plugin``.

    Accepts a ``PluginDescriptor`` itself, an object exposing a
    ``descriptor`` attribute, or an object with the four descriptor fields
    as plain attributes.
    """
    if isinstance(plugin, PluginDescriptor):
        return plugin
    descriptor = getattr(plugin, "descriptor", None)
    if isinstance(descriptor, PluginDescriptor):
        return descriptor
    try:
        return PluginDescriptor(
            name=plugin.name,
            version=plugin.version,
            compatible_contracts=plugin.compatible_contracts,
            phase=plugin.phase,
        )
    except AttributeError as exc:
        raise TypeError(f"{plugin!r} does not expose a plugin descriptor") from exc


# ── Phase protocols ─────────────────────────────────────────────────────


@runtime_checkable
class EnhancePlugin(Protocol):
    """Pure config transform; must return a new config, never mutate ``ctx``."""

    descriptor: PluginDescriptor

    def apply(self, config: ExecutableConfig, ctx: RuntimeContext) -> ExecutableConfig: ...


@runtime_checkable
class DataPlugin(Protocol):
    """Fetches one data item for a source type."""

    descriptor: PluginDescriptor
    type: str

    def validate(self, item: DataItemConfig) -> bool: ...

    async def fetch(self, item: DataItemConfig, ctx: RuntimeContext) -> DataResult: ...


@runtime_checkable
class RenderPlugin(Protocol):
    """Renders data results into a document for one render mode."""

    descriptor: PluginDescriptor
    mode: str

    async def render(
        self, data: list[DataResult], config: ExecutableConfig, ctx: RuntimeContext
    ) -> RenderResult: ...


@runtime_checkable
class ActionPlugin(Protocol):
    """Performs a side effect; failures must not affect sibling actions."""

    descriptor: PluginDescriptor
    type: str

    async def execute(self, payload: dict[str, Any], ctx: ActionContext) -> None: ...


__all__ = [
    "PluginPhase",
    "PluginDescriptor",
    "describe",
    "EnhancePlugin",
    "DataPlugin",
    "RenderPlugin",
    "ActionPlugin",
]
