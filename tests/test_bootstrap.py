"""Tests for bootstrap."""

import pytest

from reportflow.bootstrap import bootstrap
from reportflow.core.errors import (
    DuplicatePluginError,
    PluginIncompatibleError,
    RegistryLockedError,
)
from reportflow.core.settings import ReportflowSettings
from reportflow.phases.types import RenderResult
from reportflow.registry.plugins import PluginDescriptor, PluginPhase


class MarkdownRender:
    mode = "markdown"

    def __init__(self, compatible_contracts="^1.0.0"):
        self.descriptor = PluginDescriptor(
            "markdown-render", "0.3.0", compatible_contracts, PluginPhase.RENDER
        )

    async def render(self, data, config, ctx):
        return RenderResult(self.mode, f"# {config.report.title}")


class TestBootstrap:
    def test_builtins_registered(self, settings):
        """Built-ins are registered under their keys and the set is locked."""
        ctx = bootstrap(settings=settings)
        assert ctx.registries.data.keys() == ["inline", "file", "http", "https", "glob", "db"]
        assert ctx.registries.render.keys() == ["json"]
        assert ctx.registries.action.keys() == ["log", "file_output"]
        assert ctx.registries.enhance.size() == 1
        assert ctx.registries.is_locked

    def test_extra_plugins(self, settings):
        """Extra plugins are registered by phase."""
        ctx = bootstrap(settings=settings, plugins=[MarkdownRender()])
        assert ctx.registries.render.has("markdown")

    def test_incompatible_extra_plugin_aborts(self, settings):
        """An incompatible extra plugin aborts bootstrap."""
        with pytest.raises(PluginIncompatibleError):
            bootstrap(settings=settings, plugins=[MarkdownRender("^2.0.0")])

    def test_duplicate_key_aborts(self, settings):
        """An extra plugin shadowing a built-in aborts bootstrap."""
        class ShadowJson(MarkdownRender):
            mode = "json"

        with pytest.raises(DuplicatePluginError):
            bootstrap(settings=settings, plugins=[ShadowJson()])

    def test_late_registration_rejected(self, runtime):
        """Registration after bootstrap is refused."""
        with pytest.raises(RegistryLockedError):
            runtime.registries.render.register("markdown", MarkdownRender())

    def test_cli_date_wins_over_settings(self, settings):
        """A CLI date overrides the settings date."""
        ctx = bootstrap(settings=settings, cli_args={"date": "2026-02-14"})
        assert ctx.date_context.yyyymmdd == "20260214"
        assert ctx.cli_args["date"] == "2026-02-14"

    def test_contracts_version_from_settings(self):
        """The contracts version comes from settings."""
        settings = ReportflowSettings(_env_file=None, contracts_version="2.0.0", date="2026-01-31")
        # every built-in targets ^1.0.0
        with pytest.raises(PluginIncompatibleError):
            bootstrap(settings=settings)
