"""
Тесты для процессора шаблонов.

Проверяют однократный разбор, кэширование и анализ CompiledTemplate.
"""

import pytest

from rtpl.errors import TemplateSyntaxError
from rtpl.template import RenderLimits, TemplateProcessor, render_template
from rtpl.template.nodes import ForNode, IfNode, OutputNode, TextNode

from tests.infrastructure import data


class TestTemplateProcessor:

    def setup_method(self):
        self.processor = TemplateProcessor()

    def test_compile_once_render_many(self):
        """Один разобранный шаблон рендерится против разных данных."""
        compiled = self.processor.compile("Hi {{ name }}", "greeting")

        assert compiled.name == "greeting"
        assert compiled.render(data(name="A")) == "Hi A"
        assert compiled.render(data(name="B")) == "Hi B"

    def test_compile_is_cached(self):
        first = self.processor.compile("{{ a }}", "t")
        second = self.processor.compile("{{ a }}", "t")

        assert first is second

    def test_cache_distinguishes_text_and_name(self):
        base = self.processor.compile("{{ a }}", "t")

        assert self.processor.compile("{{ b }}", "t") is not base
        assert self.processor.compile("{{ a }}", "other") is not base

    def test_cache_key_survives_hash_collision(self, monkeypatch):
        """Ключ кэша — сам текст, а не его хэш."""
        monkeypatch.setattr("rtpl.template.processor.hash", lambda obj: 0, raising=False)
        first = self.processor.compile("{{ a }}", "t")
        second = self.processor.compile("{{ b }}", "t")

        assert second is not first
        assert second.render(data(b="B")) == "B"

    def test_clear_cache(self):
        first = self.processor.compile("{{ a }}")
        self.processor.clear_cache()

        assert self.processor.compile("{{ a }}") is not first

    def test_syntax_error_not_cached(self):
        with pytest.raises(TemplateSyntaxError):
            self.processor.compile("{% if x %}")
        with pytest.raises(TemplateSyntaxError):
            self.processor.compile("{% if x %}")

    def test_render_text(self):
        assert self.processor.render_text("{{ x }}!", data(x=1)) == "1!"

    def test_limits_passed_to_parser(self):
        processor = TemplateProcessor(RenderLimits(max_depth=1))

        with pytest.raises(TemplateSyntaxError, match="maximum depth 1"):
            processor.compile("{% if a %}{% if b %}x{% endif %}{% endif %}")

    def test_render_template_helper(self):
        assert render_template("{{ a.b }}", data(a={"b": "deep"})) == "deep"


class TestCompiledTemplateAnalysis:

    def setup_method(self):
        self.processor = TemplateProcessor()

    def test_variables_in_first_appearance_order(self):
        compiled = self.processor.compile(
            "{{ title }}{% if user.admin and flags %}{{ user.name }}{% endif %}{{ title }}"
        )

        assert compiled.variables() == ["title", "user", "flags"]

    def test_loop_variables_excluded(self):
        compiled = self.processor.compile(
            "{% for item in items %}{{ item.name }}{{ loop.index }}{{ prefix }}{% endfor %}{{ item }}"
        )

        # item вне цикла — снова корневая переменная
        assert compiled.variables() == ["items", "prefix", "item"]

    def test_filter_arguments_counted(self):
        compiled = self.processor.compile('{{ a | default(b) | join(sep) }}{{ "x" | upper }}')

        assert compiled.variables() == ["a", "b", "sep"]

    def test_node_counts(self):
        compiled = self.processor.compile(
            "t{{ a }}{% for x in xs %}{% if x %}{{ x }}{% elif y %}y{% endif %}{% endfor %}"
        )

        assert compiled.node_counts() == {
            TextNode.__name__: 2,
            OutputNode.__name__: 2,
            ForNode.__name__: 1,
            IfNode.__name__: 2,
        }
