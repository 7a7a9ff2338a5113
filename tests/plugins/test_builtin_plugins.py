"""Tests for the built-in plugins."""

import pytest

from reportflow.core.errors import InvalidConfigError, ReportflowError
from reportflow.phases.types import ActionContext, DataItemConfig, RenderResult
from reportflow.plugins import (
    DatabaseDataPlugin,
    FileDataPlugin,
    FileOutputActionPlugin,
    GlobDataPlugin,
    HttpDataPlugin,
    InlineDataPlugin,
    LogActionPlugin,
    builtin_plugins,
)
from reportflow.plugins.data import SourceDataPlugin, describe_data
from reportflow.registry.plugins import PluginPhase, describe


def item(source, **extra) -> DataItemConfig:
    return DataItemConfig.model_validate({"title": "t", "source": source, **extra})


class TestDescriptors:
    def test_all_builtins_target_contracts_v1(self):
        """Every built-in declares ^1.0.0."""
        for plugin in builtin_plugins():
            d = describe(plugin)
            assert d.compatible_contracts == "^1.0.0"

    def test_enhance_first(self):
        """The enhance plugin is listed first."""
        assert describe(builtin_plugins()[0]).phase is PluginPhase.ENHANCE


class TestDataPlugins:
    def test_base_is_abstract(self):
        """The shared base cannot be instantiated without validate/build_source."""
        with pytest.raises(TypeError):
            SourceDataPlugin()

    def test_validation(self):
        """Each data plugin accepts only its own source shape."""
        assert FileDataPlugin().validate(item("./a.json"))
        assert not FileDataPlugin().validate(item("a.json"))
        assert HttpDataPlugin("https").validate(item("https://x"))
        assert HttpDataPlugin().validate(item({"type": "http", "url": "http://x"}))
        assert GlobDataPlugin().validate(item("*.json"))
        assert not DatabaseDataPlugin().validate(item({"type": "db", "query": "select 1"}))
        assert InlineDataPlugin().validate(item(None))

    def test_db_tag_hides_password(self):
        """The database tag masks the password."""
        plugin = DatabaseDataPlugin()
        tag = plugin.tag_for(
            item({"type": "db", "connection": "postgresql://u:secret@h/db", "query": "q"})
        )
        assert "secret" not in tag
        assert tag.startswith("postgresql://u:")

    @pytest.mark.asyncio
    async def test_csv_file(self, runtime, tmp_path):
        """CSV files are parsed into table rows."""
        path = tmp_path / "sales.csv"
        path.write_text("id,amount\n1,10\n2,20\n", encoding="utf-8")
        result = await FileDataPlugin().fetch(item(str(path)), runtime)
        assert result.data == [{"id": "1", "amount": "10"}, {"id": "2", "amount": "20"}]
        assert result.meta["data_type"] == "table"
        assert result.meta["columns"] == 2

    @pytest.mark.asyncio
    async def test_invalid_source_shape(self, runtime):
        """An HTTP source without url is rejected."""
        with pytest.raises(InvalidConfigError):
            await HttpDataPlugin().fetch(item({"type": "http", "method": "GET"}), runtime)

    def test_describe_data(self):
        """Data is described by its shape."""
        assert describe_data({"a": 1}) == {"data_type": "object"}
        assert describe_data("text") == {"data_type": "text"}
        assert describe_data(3) == {"data_type": "value"}
        assert describe_data([]) == {"data_type": "table", "rows": 0}


class TestLogAction:
    @pytest.mark.asyncio
    async def test_logs_rendered_message(self, runtime):
        """The log action renders placeholders and tolerates unknown levels."""
        ctx = ActionContext(runtime=runtime, data=[])
        # does not raise for unknown levels
        await LogActionPlugin().execute({"message": "done {{YYYYMMDD}}", "level": "loud"}, ctx)


class TestFileOutputAction:
    RENDER = RenderResult("json", '{"ok": true}')

    @pytest.mark.asyncio
    async def test_writes_with_placeholders_and_extension(self, runtime, tmp_path):
        """Placeholders resolve and the mode extension is appended."""
        ctx = ActionContext(runtime=runtime, data=[], render_result=self.RENDER)
        target = tmp_path / "out" / "{{YYYY}}" / "report-{{YYYYMMDD}}"
        await FileOutputActionPlugin().execute({"path": str(target)}, ctx)

        written = tmp_path / "out" / "2026" / "report-20260131.json"
        assert written.read_text(encoding="utf-8") == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_html_extension_for_email_mode(self, runtime, tmp_path):
        """email renders are written as .html."""
        ctx = ActionContext(runtime=runtime, data=[], render_result=RenderResult("email", "<p/>"))
        await FileOutputActionPlugin().execute({"path": str(tmp_path / "mail")}, ctx)
        assert (tmp_path / "mail.html").exists()

    @pytest.mark.asyncio
    async def test_existing_extension_kept(self, runtime, tmp_path):
        """A path with an extension is written as given."""
        ctx = ActionContext(runtime=runtime, data=[], render_result=self.RENDER)
        await FileOutputActionPlugin().execute({"path": str(tmp_path / "r.txt")}, ctx)
        assert (tmp_path / "r.txt").exists()

    @pytest.mark.asyncio
    async def test_refuses_overwrite(self, runtime, tmp_path):
        """Existing files are kept unless overwrite is set."""
        target = tmp_path / "r.json"
        target.write_text("old", encoding="utf-8")
        ctx = ActionContext(runtime=runtime, data=[], render_result=self.RENDER)
        with pytest.raises(ReportflowError, match="already exists"):
            await FileOutputActionPlugin().execute({"path": str(target)}, ctx)
        await FileOutputActionPlugin().execute({"path": str(target), "overwrite": True}, ctx)
        assert target.read_text(encoding="utf-8") == '{"ok": true}'

    @pytest.mark.asyncio
    async def test_requires_path_and_render(self, runtime, tmp_path):
        """Both a path and a render result are required."""
        with pytest.raises(InvalidConfigError):
            await FileOutputActionPlugin().execute(
                {}, ActionContext(runtime=runtime, data=[], render_result=self.RENDER)
            )
        with pytest.raises(ReportflowError, match="render result"):
            await FileOutputActionPlugin().execute(
                {"path": str(tmp_path / "x")}, ActionContext(runtime=runtime, data=[])
            )
