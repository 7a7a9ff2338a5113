"""Tests for ReportLifecycle."""

import json

import pytest

from reportflow.bootstrap import bootstrap
from reportflow.core.errors import SourceNotFoundError
from reportflow.lifecycle import ReportLifecycle, render_modes_for
from reportflow.phases.types import ExecutableConfig


def config(actions, data=None) -> ExecutableConfig:
    return ExecutableConfig.model_validate(
        {
            "report": {"title": "Daily {{YYYYMMDD}}"},
            "data": data if data is not None else [{"title": "rows", "source": [{"id": 1}]}],
            "actions": actions,
        }
    )


class TestRenderModes:
    def test_only_report_ready_actions(self):
        """Render modes come from report_ready actions, deduplicated."""
        cfg = config(
            [
                {"type": "log", "on": "data_ready", "renderMode": "html"},
                {"type": "file_output", "on": "report_ready"},
                {"type": "file_output", "on": "report_ready", "renderMode": "json"},
            ]
        )
        assert render_modes_for(cfg) == ["json"]

    def test_none_without_report_ready(self):
        """No report_ready actions means no renders."""
        assert render_modes_for(config([{"type": "log", "on": "data_ready"}])) == []


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_full_run_writes_report(self, runtime, tmp_path):
        """A full run fetches, renders and writes the report."""
        cfg = config(
            [
                {"type": "log", "on": "data_ready", "spec": {"message": "fetched"}},
                {
                    "type": "file_output",
                    "on": "report_ready",
                    "spec": {"path": str(tmp_path / "daily-{{YYYYMMDD}}")},
                },
            ]
        )
        report = await ReportLifecycle(runtime).run(cfg)

        assert report.success
        assert [a.type for a in report.actions] == ["log", "file_output"]
        assert report.config.report.title == "Daily 20260131"
        document = json.loads((tmp_path / "daily-20260131.json").read_text(encoding="utf-8"))
        assert document["report"]["title"] == "Daily 20260131"
        assert document["data"][0]["data"] == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_no_render_without_report_ready(self, runtime):
        """Nothing renders when no action needs it."""
        report = await ReportLifecycle(runtime).run(config([{"type": "log", "on": "data_ready"}]))
        assert report.renders == {}
        assert report.success

    @pytest.mark.asyncio
    async def test_failed_action_reported(self, runtime, tmp_path):
        """A failing action is reported without stopping the others."""
        target = tmp_path / "taken.json"
        target.write_text("{}", encoding="utf-8")
        cfg = config(
            [
                {"type": "file_output", "on": "report_ready", "spec": {"path": str(target)}},
                {"type": "log", "on": "report_ready"},
            ]
        )
        report = await ReportLifecycle(runtime).run(cfg)
        assert not report.success
        assert [a.type for a in report.failed_actions] == ["file_output"]
        assert report.actions[1].success
        assert report.to_dict()["actions"][0]["error"].startswith("File already exists")

    @pytest.mark.asyncio
    async def test_data_failure_aborts_before_actions(self, settings, functions, tmp_path):
        """A data phase failure aborts the run."""
        ctx = bootstrap(settings=settings, functions=functions)
        cfg = config(
            [{"type": "log", "on": "data_ready"}],
            data=[{"title": "gone", "source": str(tmp_path / "gone.json")}],
        )
        with pytest.raises(SourceNotFoundError):
            await ReportLifecycle(ctx).run(cfg)
