"""Built-in plugins registered by ``bootstrap``."""

from reportflow.plugins.action import FileOutputActionPlugin, LogActionPlugin, action_plugins
from reportflow.plugins.data import (
    DatabaseDataPlugin,
    FileDataPlugin,
    GlobDataPlugin,
    HttpDataPlugin,
    InlineDataPlugin,
    SourceDataPlugin,
    data_plugins,
)
from reportflow.plugins.enhance import TemplateEnhancePlugin, enhance_plugins
from reportflow.plugins.render import JsonRenderPlugin, render_plugins


def builtin_plugins() -> list:
    """Every built-in plugin, enhance first."""
    return [*enhance_plugins(), *data_plugins(), *render_plugins(), *action_plugins()]


__all__ = [
    "DatabaseDataPlugin",
    "FileDataPlugin",
    "FileOutputActionPlugin",
    "GlobDataPlugin",
    "HttpDataPlugin",
    "InlineDataPlugin",
    "JsonRenderPlugin",
    "LogActionPlugin",
    "SourceDataPlugin",
    "TemplateEnhancePlugin",
    "builtin_plugins",
]
