"""
Typer application for the ``reportflow`` command.

    reportflow --version
    reportflow plugins [--json]
    reportflow aggregate PIPELINE_FILE [--json]
    reportflow run REPORT_FILE [--date YYYY-MM-DD] [--json]
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from reportflow import __version__
from reportflow.bootstrap import bootstrap
from reportflow.config.loader import load_pipeline_config, load_report_config
from reportflow.core.errors import ReportflowError
from reportflow.core.logging import configure_logging
from reportflow.core.settings import get_settings
from reportflow.lifecycle import LifecycleReport, ReportLifecycle
from reportflow.pipeline.orchestrator import DataPipeline
from reportflow.pipeline.types import PipelineConfig, PipelineResult
from reportflow.resources import ResourcePool

app = typer.Typer(
    name="reportflow",
    help="reportflow — config-driven report pipelines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"reportflow {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Override REPORTFLOW_LOG_LEVEL."),
) -> None:
    """reportflow CLI — inspect plugins, run aggregates and report lifecycles."""
    settings = get_settings()
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_format == "json",
    )


# ── Output helpers ───────────────────────────────────────────────────────


def _fail(error: Exception) -> None:
    if isinstance(error, ReportflowError):
        err_console.print(f"[bold red]Error[/bold red] ({error.category.value}): {error.message}")
    else:
        err_console.print(f"[bold red]Error[/bold red]: {error}")
    raise typer.Exit(code=1)


def _print_records(data: Any, *, title: str) -> None:
    if isinstance(data, list) and data and all(isinstance(d, dict) for d in data):
        columns = list(dict.fromkeys(k for d in data for k in d))
        table = Table(title=title, show_lines=False, pad_edge=False)
        for col in columns:
            table.add_column(str(col), overflow="fold")
        for row in data:
            table.add_row(*(str(row.get(c, "")) for c in columns))
        console.print(table)
    else:
        console.print_json(json.dumps(data, default=str))


# ── Commands ─────────────────────────────────────────────────────────────


@app.command("plugins")
def list_plugins(json_out: bool = typer.Option(False, "--json")) -> None:
    """List the registered plugins per phase."""
    ctx = bootstrap()
    descriptors = ctx.registries.descriptors()

    if json_out:
        payload = {phase: [d.to_dict() for d in items] for phase, items in descriptors.items()}
        console.print_json(json.dumps(payload))
        return

    table = Table(title="Plugins")
    for col in ("phase", "name", "version", "contracts"):
        table.add_column(col)
    for phase, items in descriptors.items():
        for d in items:
            table.add_row(phase, d.name, d.version, d.compatible_contracts)
    console.print(table)


async def _run_aggregate(config: PipelineConfig) -> PipelineResult:
    settings = get_settings()
    async with ResourcePool(http_timeout_seconds=settings.http_timeout_seconds) as resources:
        pipeline = DataPipeline(
            resources=resources,
            default_max_parallel=settings.default_max_parallel,
            default_timeout_ms=settings.default_timeout_ms,
        )
        for fetcher in config.fetchers:
            pipeline.register_fetcher(fetcher)
        return await pipeline.execute_aggregate(config.aggregate)


@app.command("aggregate")
def aggregate(
    pipeline_file: Path = typer.Argument(..., help="Pipeline YAML/JSON file"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run the aggregate defined in a pipeline file."""
    try:
        config = load_pipeline_config(pipeline_file)
        result = asyncio.run(_run_aggregate(config))
    except ReportflowError as e:
        _fail(e)
        return

    if json_out:
        console.print_json(json.dumps(result.to_dict(), default=str))
    else:
        _print_records(result.data, title=f"Aggregate ({len(config.aggregate.fetchers)} fetchers)")
        for error in result.errors:
            err_console.print(f"[yellow]warning[/yellow]: {error}")

    if not result.success:
        raise typer.Exit(code=1)


async def _run_report(report_file: Path, cli_args: dict[str, Any]) -> LifecycleReport:
    ctx = bootstrap(cli_args=cli_args)
    try:
        config = load_report_config(report_file)
        return await ReportLifecycle(ctx).run(config)
    finally:
        await ctx.resources.aclose()


@app.command("run")
def run(
    report_file: Path = typer.Argument(..., help="Report YAML/JSON file"),
    date: str | None = typer.Option(None, "--date", help="Report date (YYYY-MM-DD)"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run a report through enhance, data, render and action phases."""
    cli_args = {"date": date} if date else {}
    try:
        report = asyncio.run(_run_report(report_file, cli_args))
    except ReportflowError as e:
        _fail(e)
        return

    if json_out:
        console.print_json(json.dumps(report.to_dict(), default=str))
    else:
        table = Table(title=report.config.report.title)
        for col in ("item", "tag", "type", "size"):
            table.add_column(col)
        for item in report.data:
            size = item.meta.get("rows", len(item.data) if hasattr(item.data, "__len__") else "")
            table.add_row(item.title, item.tag, str(item.meta.get("data_type", "")), str(size))
        console.print(table)
        for action in report.actions:
            status = "[green]ok[/green]" if action.success else f"[red]failed[/red] {action.error}"
            console.print(f"  action [cyan]{action.type}[/cyan]: {status} ({action.duration_ms} ms)")

    if not report.success:
        raise typer.Exit(code=1)


__all__ = ["app"]
