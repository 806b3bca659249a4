"""
AST-узлы шаблонизатора.

Неизменяемая иерархия классов для представления структуры шаблона.
Инструкции (текст, вывод, if, for) образуют тело шаблона,
выражения (переменные, литералы, операторы, фильтры) — их аргументы.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


@dataclass(frozen=True)
class TemplateNode:
    """Базовый класс для всех узлов AST шаблона."""
    pass


# ---- Выражения ----

@dataclass(frozen=True)
class ExprNode(TemplateNode):
    """Базовый класс узлов-выражений."""
    pass


@dataclass(frozen=True)
class VarRefNode(ExprNode):
    """
    Ссылка на переменную: name или name.key.0

    Первый сегмент ищется в стеке контекста, остальные — внутри значения
    (ключ мапы или индекс последовательности).
    """
    path: Tuple[str, ...]
    # Позиция для сообщений об ошибках; в сравнении узлов не участвует
    line: int = field(default=0, compare=False)
    column: int = field(default=0, compare=False)

    @property
    def dotted(self) -> str:
        return ".".join(self.path)


@dataclass(frozen=True)
class LiteralNode(ExprNode):
    """Литерал: строка, число, true/false, null/none."""
    value: Any


@dataclass(frozen=True)
class NotNode(ExprNode):
    """Отрицание: not expr"""
    operand: ExprNode


@dataclass(frozen=True)
class BinaryNode(ExprNode):
    """Логическая операция: left and/or right (с коротким вычислением)."""
    op: str
    left: ExprNode
    right: ExprNode


@dataclass(frozen=True)
class CompareNode(ExprNode):
    """Сравнение: left == != < <= > >= right"""
    op: str
    left: ExprNode
    right: ExprNode


@dataclass(frozen=True)
class FilterNode(ExprNode):
    """Применение фильтра: expr | name(args...)"""
    expr: ExprNode
    name: str
    args: Tuple[ExprNode, ...] = ()


# ---- Инструкции ----

@dataclass(frozen=True)
class TextNode(TemplateNode):
    """
    Обычный текстовый контент в шаблоне.

    Представляет статический текст, который не требует обработки
    и выводится в результат как есть.
    """
    text: str


@dataclass(frozen=True)
class OutputNode(TemplateNode):
    """Вывод значения выражения: {{ expr }}"""
    expr: ExprNode


@dataclass(frozen=True)
class IfNode(TemplateNode):
    """
    Условный блок {% if cond %}...{% elif cond %}...{% else %}...{% endif %}.

    Цепочка elif представлена вложенным IfNode — единственным элементом else_body.
    """
    condition: ExprNode
    then_body: List[TemplateNode]
    else_body: Optional[List[TemplateNode]] = None


@dataclass(frozen=True)
class ForNode(TemplateNode):
    """
    Цикл {% for item in items %}...{% endfor %}.

    На каждой итерации в контекст добавляется фрейм с переменной цикла и loop.
    """
    loop_var: str
    iterable: ExprNode
    body: List[TemplateNode]


# Алиас для списка узлов (AST)
TemplateAST = List[TemplateNode]


__all__ = [
    "TemplateNode",
    "ExprNode",
    "VarRefNode",
    "LiteralNode",
    "NotNode",
    "BinaryNode",
    "CompareNode",
    "FilterNode",
    "TextNode",
    "OutputNode",
    "IfNode",
    "ForNode",
    "TemplateAST",
]
