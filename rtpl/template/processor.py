"""
Процессор шаблонов.

Публичный API движка: разбор шаблона выполняется один раз (compile),
после чего полученный AST рендерится против любого числа наборов данных.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from .evaluator import LOOP_KEY, RenderLimits, TemplateEvaluator
from .lexer import TemplateLexer
from .nodes import (
    BinaryNode,
    CompareNode,
    ExprNode,
    FilterNode,
    ForNode,
    IfNode,
    NotNode,
    OutputNode,
    TemplateAST,
    TemplateNode,
    VarRefNode,
)
from .parser import TemplateParser
from ..data.model import Value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledTemplate:
    """
    Разобранный шаблон, пригодный для многократного рендеринга.

    AST неизменяем и не содержит состояния рендера.
    """
    name: str
    ast: TemplateAST
    limits: RenderLimits

    def render(self, data: Value) -> str:
        """Рендерит шаблон против данных (RenderError при ошибке)."""
        return TemplateEvaluator(self.limits).render(self.ast, data)

    def variables(self) -> List[str]:
        """
        Имена корневых переменных, на которые ссылается шаблон.

        Переменные циклов и loop внутри тел циклов не учитываются.
        Порядок — порядок первого появления.
        """
        found: Dict[str, None] = {}
        _collect_nodes(self.ast, frozenset(), found)
        return list(found)

    def node_counts(self) -> Dict[str, int]:
        """Количество узлов каждого типа (рекурсивно, только инструкции)."""
        counts: Dict[str, int] = {}
        for node in _walk(self.ast):
            key = type(node).__name__
            counts[key] = counts.get(key, 0) + 1
        return counts


class TemplateProcessor:
    """
    Основной процессор шаблонов.

    Кэширует разобранные шаблоны по имени и содержимому.
    """

    def __init__(self, limits: Optional[RenderLimits] = None):
        self.limits = limits or RenderLimits()
        self._template_cache: Dict[Tuple[str, str], CompiledTemplate] = {}

    def compile(self, template_text: str, template_name: str = "") -> CompiledTemplate:
        """
        Разбирает текст шаблона в CompiledTemplate с кэшированием.

        Raises:
            TemplateSyntaxError: При ошибке разбора
        """
        cache_key = (template_name, template_text)

        cached = self._template_cache.get(cache_key)
        if cached is not None:
            return cached

        tokens = TemplateLexer(template_text).tokenize()
        ast = TemplateParser(tokens, max_depth=self.limits.max_depth).parse()
        compiled = CompiledTemplate(name=template_name, ast=ast, limits=self.limits)
        self._template_cache[cache_key] = compiled
        logger.debug(f"Parsed template '{template_name}' -> {len(ast)} nodes")
        return compiled

    def render_text(self, template_text: str, data: Value, template_name: str = "") -> str:
        """
        Разбирает (или берёт из кэша) и рендерит шаблон.

        Raises:
            TemplateSyntaxError: При ошибке разбора
            RenderError: При ошибке вычисления
        """
        return self.compile(template_text, template_name).render(data)

    def clear_cache(self) -> None:
        self._template_cache.clear()


# ======= Обход AST =======

def _walk(nodes: Iterable[TemplateNode]) -> Iterable[TemplateNode]:
    for node in nodes:
        yield node
        if isinstance(node, IfNode):
            yield from _walk(node.then_body)
            if node.else_body is not None:
                yield from _walk(node.else_body)
        elif isinstance(node, ForNode):
            yield from _walk(node.body)


def _collect_nodes(nodes: Iterable[TemplateNode], bound: FrozenSet[str], found: Dict[str, None]) -> None:
    for node in nodes:
        if isinstance(node, OutputNode):
            _collect_expr(node.expr, bound, found)
        elif isinstance(node, IfNode):
            _collect_expr(node.condition, bound, found)
            _collect_nodes(node.then_body, bound, found)
            if node.else_body is not None:
                _collect_nodes(node.else_body, bound, found)
        elif isinstance(node, ForNode):
            _collect_expr(node.iterable, bound, found)
            _collect_nodes(node.body, bound | {node.loop_var, LOOP_KEY}, found)


def _collect_expr(expr: ExprNode, bound: FrozenSet[str], found: Dict[str, None]) -> None:
    if isinstance(expr, VarRefNode):
        if expr.path[0] not in bound:
            found.setdefault(expr.path[0], None)
    elif isinstance(expr, NotNode):
        _collect_expr(expr.operand, bound, found)
    elif isinstance(expr, (BinaryNode, CompareNode)):
        _collect_expr(expr.left, bound, found)
        _collect_expr(expr.right, bound, found)
    elif isinstance(expr, FilterNode):
        _collect_expr(expr.expr, bound, found)
        for arg in expr.args:
            _collect_expr(arg, bound, found)


__all__ = ["TemplateProcessor", "CompiledTemplate"]
