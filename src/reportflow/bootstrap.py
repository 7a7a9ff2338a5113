"""
Bootstrap — build the registries and the runtime context for one run.

Steps:
    1. Create an unlocked registry bundle for the contracts version
    2. Register the built-in plugins, then any extra plugins
    3. Build the date context (CLI ``date`` → settings ``date`` → today)
    4. Lock every registry
    5. Assemble the read-only ``RuntimeContext``

After step 4 nothing can be registered for the rest of the process;
plugins arriving later get ``RegistryLockedError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from reportflow.context import RuntimeContext, build_date_context
from reportflow.core.logging import get_logger
from reportflow.core.settings import ReportflowSettings, get_settings
from reportflow.pipeline.functions import FunctionTable, get_default_functions
from reportflow.plugins import builtin_plugins
from reportflow.registry.plugins import PluginPhase, describe
from reportflow.registry.registries import Registries, create_registries, lock_registries
from reportflow.resources import ResourcePool

logger = get_logger(__name__)


def register_plugin(registries: Registries, plugin: Any) -> None:
    """Register ``plugin`` with the registry for its declared phase.

    Data and action plugins are keyed by ``type``, render plugins by
    ``mode``. Enhance plugins are appended to the enhance pipeline.
    """
    phase = describe(plugin).phase
    if phase is PluginPhase.ENHANCE:
        registries.enhance.register(plugin)
    elif phase is PluginPhase.DATA:
        registries.data.register(plugin.type, plugin)
    elif phase is PluginPhase.RENDER:
        registries.render.register(plugin.mode, plugin)
    else:
        registries.action.register(plugin.type, plugin)


def bootstrap(
    settings: ReportflowSettings | None = None,
    cli_args: Mapping[str, Any] | None = None,
    plugins: Iterable[Any] | None = None,
    *,
    functions: FunctionTable | None = None,
    resources: ResourcePool | None = None,
) -> RuntimeContext:
    """Create, populate and lock the registries; return the runtime context."""
    settings = settings or get_settings()
    cli_args = dict(cli_args or {})

    registries = create_registries(settings.contracts_version)
    for plugin in builtin_plugins():
        register_plugin(registries, plugin)
    for plugin in plugins or ():
        register_plugin(registries, plugin)

    date_context = build_date_context(cli_args.get("date") or settings.date)
    lock_registries(registries)

    ctx = RuntimeContext(
        settings=settings,
        date_context=date_context,
        registries=registries,
        resources=resources or ResourcePool(http_timeout_seconds=settings.http_timeout_seconds),
        functions=functions or get_default_functions(),
        cli_args=cli_args,
    )
    logger.info(
        "bootstrap.complete",
        contracts_version=settings.contracts_version,
        date=date_context.raw_date,
    )
    return ctx


__all__ = ["bootstrap", "register_plugin"]
