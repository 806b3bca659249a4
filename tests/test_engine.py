"""
Тесты конвейера Engine: шаблон -> данные -> рендер, отчёт и запись результата.
"""

import io

import pytest

from rtpl.data import DataSource, DataSourceKind
from rtpl.engine import Engine, run_render, run_report, write_output
from rtpl.errors import DataError, OutputError, RenderError, TemplateLoadError, TemplateSyntaxError
from rtpl.template import RenderLimits
from rtpl.types import RunOptions

from tests.infrastructure import write


def _opts(**kwargs) -> RunOptions:
    kwargs.setdefault("include_env", False)
    return RunOptions(**kwargs)


class TestRender:

    def test_render_file_with_sources(self, tmpproj):
        options = _opts(
            template_path=tmpproj / "page.tpl",
            sources=(DataSource(DataSourceKind.FILE_PATH, tmpproj / "data.json"),),
        )

        assert run_render(options, environ={}) == "Hello, Homebrew!\n- a\n- b\nguest\n"

    def test_yaml_overrides_json(self, tmpproj):
        options = _opts(
            template_path=tmpproj / "page.tpl",
            sources=(
                DataSource(DataSourceKind.FILE_PATH, tmpproj / "data.json"),
                DataSource(DataSourceKind.FILE_PATH, tmpproj / "override.yaml"),
            ),
        )

        assert run_render(options, environ={}) == "Hello, Root!\n- a\n- b\nadmin\n"

    def test_template_text(self):
        options = _opts(template_text="{{ _ENV.USER_NAME }}", include_env=True)

        assert run_render(options, environ={"USER_NAME": "ci"}) == "ci"

    def test_env_prefix_uses_given_environ(self):
        options = _opts(
            template_text="{{ NAME }}",
            sources=(DataSource(DataSourceKind.ENV_PREFIX, "APP_"),),
        )

        assert run_render(options, environ={"APP_NAME": "svc"}) == "svc"

    def test_template_name(self, tmp_path):
        assert _opts(template_text="x").template_name == "<stdin>"
        assert _opts(template_path=tmp_path / "a.tpl").template_name == str(tmp_path / "a.tpl")


class TestErrorOrdering:

    def test_syntax_error_reported_before_data_error(self, tmp_path):
        """Шаблон разбирается до загрузки данных."""
        options = _opts(
            template_text="{% if x %}",
            sources=(DataSource(DataSourceKind.INLINE_JSON, "not json"),),
        )

        with pytest.raises(TemplateSyntaxError):
            run_render(options, environ={})

    def test_data_error(self):
        options = _opts(
            template_text="ok",
            sources=(DataSource(DataSourceKind.INLINE_JSON, "{broken"),),
        )

        with pytest.raises(DataError):
            run_render(options, environ={})

    def test_render_error(self):
        with pytest.raises(RenderError):
            run_render(_opts(template_text="{{ nobody }}"), environ={})

    def test_missing_template(self, tmp_path):
        with pytest.raises(TemplateLoadError, match="Template file not found"):
            run_render(_opts(template_path=tmp_path / "none.tpl"), environ={})

    def test_no_template(self):
        with pytest.raises(TemplateLoadError, match="No template provided"):
            run_render(_opts(), environ={})

    def test_limits_applied(self):
        options = _opts(
            template_text="{% for x in xs %}{% endfor %}",
            sources=(DataSource(DataSourceKind.INLINE_JSON, '{"xs": [1, 2, 3]}'),),
            limits=RenderLimits(max_iterations=2),
        )

        with pytest.raises(RenderError, match="budget exceeded"):
            run_render(options, environ={})


class TestReport:

    def test_report_fields(self, tmpproj):
        options = _opts(
            template_path=tmpproj / "page.tpl",
            sources=(DataSource(DataSourceKind.FILE_PATH, tmpproj / "data.json"),),
        )

        report = run_report(options, environ={})

        assert report.template_name == str(tmpproj / "page.tpl")
        assert report.variables == ["user", "items", "admin"]
        assert report.node_counts["ForNode"] == 1
        assert report.data_sources == [f"file {tmpproj / 'data.json'}"]
        assert report.rendered_chars == len("Hello, Homebrew!\n- a\n- b\nguest\n")
        assert report.rendered_lines == 4

    def test_report_aliases(self):
        report = run_report(_opts(template_text="x"), environ={})
        dumped = report.model_dump(mode="json", by_alias=True)

        assert {"protocol", "toolVersion", "templateName", "variables", "nodeCounts",
                "dataSources", "renderedChars", "renderedLines"} == set(dumped)


class TestWriteOutput:

    def test_stream(self):
        buf = io.StringIO()
        write_output("text", stream=buf)

        assert buf.getvalue() == "text"

    def test_file(self, tmp_path):
        target = tmp_path / "out.txt"
        write_output("ünï\n", target)

        assert target.read_text(encoding="utf-8") == "ünï\n"

    def test_unwritable_path(self, tmp_path):
        target = write(tmp_path / "file", "x") / "child.txt"

        with pytest.raises(OutputError, match="Failed to write to output file"):
            write_output("text", target)


def test_engine_reuses_processor():
    engine = Engine(_opts(template_text="{{ 1 }}"), environ={})

    assert engine.compile() is engine.compile()
