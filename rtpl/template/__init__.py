"""
Движок шаблонизации rtpl.

Лексер -> парсер -> AST -> вычислитель. Синтаксис:
- {{ expr }} — вывод значения (пути, литералы, фильтры)
- {% if %}/{% elif %}/{% else %}/{% endif %} — условия
- {% for x in items %}/{% endfor %} — циклы
- {# ... #} — комментарии, {{{{ — литеральный {{
"""

from __future__ import annotations

from .evaluator import RenderContext, RenderLimits, TemplateEvaluator
from .lexer import TemplateLexer, tokenize_template
from .nodes import TemplateAST
from .parser import TemplateParser, parse_template
from .processor import CompiledTemplate, TemplateProcessor
from .tokens import Token, TokenType
from ..data.model import Value


def render_template(template_text: str, data: Value, limits: RenderLimits | None = None) -> str:
    """
    Разбирает и рендерит шаблон за один вызов.

    Для многократного рендеринга одного шаблона используйте TemplateProcessor.compile().
    """
    return TemplateProcessor(limits).render_text(template_text, data)


__all__ = [
    "TemplateLexer",
    "tokenize_template",
    "TemplateParser",
    "parse_template",
    "TemplateEvaluator",
    "RenderContext",
    "RenderLimits",
    "TemplateProcessor",
    "CompiledTemplate",
    "TemplateAST",
    "Token",
    "TokenType",
    "render_template",
]
