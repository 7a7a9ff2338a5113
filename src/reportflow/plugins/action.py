"""
Built-in action plugins.

``log``
    Emits an ``action.log`` event. Payload: ``message`` (date
    placeholders resolved), ``level`` (default ``info``).

``file_output``
    Writes the render result to disk. Payload: ``path`` (date
    placeholders resolved), ``encoding`` (utf-8), ``overwrite`` (False),
    ``auto_extension`` (True, appends the render mode's extension when
    the path has none).
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from reportflow.core.errors import InvalidConfigError, ReportflowError
from reportflow.core.logging import get_logger
from reportflow.core.versioning import CONTRACTS_VERSION
from reportflow.phases.types import ActionContext
from reportflow.registry.plugins import PluginDescriptor, PluginPhase

logger = get_logger(__name__)

EXTENSIONS = {
    "json": ".json",
    "html": ".html",
    "email": ".html",
    "markdown": ".md",
}


def _descriptor(name: str) -> PluginDescriptor:
    return PluginDescriptor(
        name=name,
        version=CONTRACTS_VERSION,
        compatible_contracts="^1.0.0",
        phase=PluginPhase.ACTION,
    )


class LogActionPlugin:
    type = "log"
    descriptor = _descriptor("log-action")

    async def execute(self, payload: dict[str, Any], ctx: ActionContext) -> None:
        message = ctx.runtime.date_context.render(str(payload.get("message", "report data ready")))
        level = str(payload.get("level", "info")).lower()
        log = getattr(logger, level, logger.info)
        log(
            "action.log",
            message=message,
            items=[item.title for item in ctx.data],
            render_mode=ctx.render_result.render_mode if ctx.render_result else None,
        )


class FileOutputActionPlugin:
    type = "file_output"
    descriptor = _descriptor("file-output-action")

    async def execute(self, payload: dict[str, Any], ctx: ActionContext) -> None:
        raw_path = payload.get("path")
        if not raw_path:
            raise InvalidConfigError("path", raw_path, 'file_output requires "path" in payload')
        render = ctx.render_result
        if render is None:
            raise ReportflowError("file_output requires a render result (report content)")

        path = Path(ctx.runtime.date_context.render(str(raw_path)))
        if payload.get("auto_extension", payload.get("autoExtension", True)) and not path.suffix:
            path = path.with_name(path.name + EXTENSIONS.get(render.render_mode, ".txt"))
        path = path.resolve()

        if path.exists() and not payload.get("overwrite", False):
            raise ReportflowError(f"File already exists: {path}. Set overwrite=true to overwrite.")

        encoding = payload.get("encoding", "utf-8")
        await asyncio.to_thread(_write, path, render.content, encoding)
        logger.info(
            "action.file_written",
            path=str(path),
            render_mode=render.render_mode,
            chars=len(render.content),
        )


def _write(path: Path, content: str, encoding: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding=encoding)


def action_plugins() -> list[Any]:
    return [LogActionPlugin(), FileOutputActionPlugin()]


__all__ = ["LogActionPlugin", "FileOutputActionPlugin", "action_plugins"]
