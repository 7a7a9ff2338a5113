"""
Subsystem registries and the bootstrap bundle.

``DataRegistry``, ``RenderRegistry`` and ``ActionRegistry`` are typed
instantiations of ``PluginRegistry`` that add a dispatch helper.
``EnhanceRegistry`` is an ordered pipeline rather than a lookup: every
plugin is applied in registration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Any

from reportflow.core.errors import (
    DuplicatePluginError,
    PluginIncompatibleError,
    PluginTypeError,
    RegistryLockedError,
)
from reportflow.core.logging import get_logger
from reportflow.core.versioning import CONTRACTS_VERSION, VersionGate
from reportflow.registry.base import PluginRegistry
from reportflow.registry.plugins import (
    ActionPlugin,
    DataPlugin,
    EnhancePlugin,
    PluginDescriptor,
    PluginPhase,
    RenderPlugin,
    describe,
)

if TYPE_CHECKING:
    from reportflow.context import RuntimeContext
    from reportflow.phases.types import (
        ActionContext,
        DataItemConfig,
        DataResult,
        ExecutableConfig,
        RenderResult,
    )

logger = get_logger(__name__)


class DataRegistry(PluginRegistry[str, DataPlugin]):
    """Data plugins keyed by source type (inline, file, http, ...)."""

    def __init__(self, contracts_version: str = CONTRACTS_VERSION):
        super().__init__(contracts_version, PluginPhase.DATA)

    async def fetch(self, type: str, item: DataItemConfig, ctx: RuntimeContext) -> DataResult:
        plugin = self.require(type)
        return await plugin.fetch(item, ctx)


class RenderRegistry(PluginRegistry[str, RenderPlugin]):
    """Render plugins keyed by render mode."""

    def __init__(self, contracts_version: str = CONTRACTS_VERSION):
        super().__init__(contracts_version, PluginPhase.RENDER)

    async def render(
        self,
        mode: str,
        data: list[DataResult],
        config: ExecutableConfig,
        ctx: RuntimeContext,
    ) -> RenderResult:
        plugin = self.require(mode)
        return await plugin.render(data, config, ctx)


class ActionRegistry(PluginRegistry[str, ActionPlugin]):
    """Action plugins keyed by action type."""

    def __init__(self, contracts_version: str = CONTRACTS_VERSION):
        super().__init__(contracts_version, PluginPhase.ACTION)

    async def execute(self, type: str, payload: dict[str, Any], ctx: ActionContext) -> None:
        plugin = self.require(type)
        await plugin.execute(payload, ctx)


class EnhanceRegistry:
    """Ordered enhance pipeline with the same lock and version gate."""

    def __init__(self, contracts_version: str = CONTRACTS_VERSION):
        self.name = type(self).__name__
        self.contracts_version = contracts_version
        self._gate = VersionGate(contracts_version)
        self._plugins: list[EnhancePlugin] = []
        self._locked = False

    def register(self, plugin: EnhancePlugin) -> None:
        if self._locked:
            raise RegistryLockedError(self.name)

        descriptor = describe(plugin)
        if any(describe(p).name == descriptor.name for p in self._plugins):
            raise DuplicatePluginError(descriptor.name)
        if descriptor.phase != PluginPhase.ENHANCE:
            raise PluginTypeError(descriptor.name, PluginPhase.ENHANCE.value, descriptor.phase.value)
        if not self._gate.accepts(descriptor.compatible_contracts):
            raise PluginIncompatibleError(descriptor.name, descriptor.version, self.contracts_version)

        self._plugins.append(plugin)
        logger.debug("registry.plugin_registered", registry=self.name, plugin=descriptor.name)

    def lock(self) -> None:
        self._locked = True

    @property
    def is_locked(self) -> bool:
        return self._locked

    def apply_all(self, config: ExecutableConfig, ctx: RuntimeContext) -> ExecutableConfig:
        """Fold ``config`` through every plugin in registration order."""
        return reduce(lambda acc, plugin: plugin.apply(acc, ctx), self._plugins, config)

    def list(self) -> list[EnhancePlugin]:
        return list(self._plugins)

    def descriptors(self) -> list[PluginDescriptor]:
        return [describe(p) for p in self._plugins]

    def size(self) -> int:
        return len(self._plugins)

    def __len__(self) -> int:
        return len(self._plugins)


@dataclass(frozen=True)
class Registries:
    """The four subsystem registries built at bootstrap."""

    data: DataRegistry
    render: RenderRegistry
    action: ActionRegistry
    enhance: EnhanceRegistry

    @property
    def is_locked(self) -> bool:
        return all(r.is_locked for r in (self.data, self.render, self.action, self.enhance))

    def descriptors(self) -> dict[str, list[PluginDescriptor]]:
        return {
            PluginPhase.ENHANCE.value: self.enhance.descriptors(),
            PluginPhase.DATA.value: self.data.descriptors(),
            PluginPhase.RENDER.value: self.render.descriptors(),
            PluginPhase.ACTION.value: self.action.descriptors(),
        }


def create_registries(contracts_version: str = CONTRACTS_VERSION) -> Registries:
    """Create an unlocked registry bundle for one contracts version."""
    return Registries(
        data=DataRegistry(contracts_version),
        render=RenderRegistry(contracts_version),
        action=ActionRegistry(contracts_version),
        enhance=EnhanceRegistry(contracts_version),
    )


def lock_registries(registries: Registries) -> None:
    """Lock every registry in the bundle."""
    registries.enhance.lock()
    registries.data.lock()
    registries.render.lock()
    registries.action.lock()
    logger.info(
        "registry.all_locked",
        data=registries.data.size(),
        render=registries.render.size(),
        action=registries.action.size(),
        enhance=registries.enhance.size(),
    )


__all__ = [
    "DataRegistry",
    "RenderRegistry",
    "ActionRegistry",
    "EnhanceRegistry",
    "Registries",
    "create_registries",
    "lock_registries",
]
