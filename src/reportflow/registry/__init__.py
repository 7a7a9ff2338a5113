"""Plugin registries."""

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
from reportflow.registry.registries import (
    ActionRegistry,
    DataRegistry,
    EnhanceRegistry,
    Registries,
    RenderRegistry,
    create_registries,
    lock_registries,
)

__all__ = [
    "ActionPlugin",
    "ActionRegistry",
    "DataPlugin",
    "DataRegistry",
    "EnhancePlugin",
    "EnhanceRegistry",
    "PluginDescriptor",
    "PluginPhase",
    "PluginRegistry",
    "Registries",
    "RenderPlugin",
    "RenderRegistry",
    "create_registries",
    "describe",
    "lock_registries",
]
