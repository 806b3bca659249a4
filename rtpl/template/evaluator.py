"""
Вычислитель AST шаблона.

Обходит дерево в глубину против привязанных данных и собирает текст.
Переменные ищутся в стеке фреймов от внутреннего к внешнему, затем в корне.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from .filters import get_filter
from .nodes import (
    BinaryNode,
    CompareNode,
    ExprNode,
    FilterNode,
    ForNode,
    IfNode,
    LiteralNode,
    NotNode,
    OutputNode,
    TemplateAST,
    TemplateNode,
    TextNode,
    VarRefNode,
)
from .parser import DEFAULT_MAX_DEPTH
from ..data.model import Value, ValueKind
from ..errors import RenderError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 100_000

LOOP_KEY = "loop"


@dataclass(frozen=True)
class RenderLimits:
    """
    Ограничения на разбор и рендеринг.

    max_depth: вложенность блоков и выражений
    max_iterations: суммарное число итераций циклов за один рендер (0 — без лимита)
    """
    max_depth: int = DEFAULT_MAX_DEPTH
    max_iterations: int = DEFAULT_MAX_ITERATIONS


class RenderContext:
    """
    Стек фреймов переменных поверх корневого значения.

    Создаётся на один вызов рендеринга; каждый цикл добавляет и снимает
    по одному фрейму на итерацию.
    """

    def __init__(self, root: Value):
        self.root = root
        self.frames: List[Dict[str, Value]] = []

    def push(self, frame: Dict[str, Value]) -> None:
        self.frames.append(frame)

    def pop(self) -> None:
        self.frames.pop()

    def lookup(self, name: str) -> Optional[Value]:
        """Ищет имя от внутреннего фрейма к внешнему, затем в корневой мапе."""
        for frame in reversed(self.frames):
            if name in frame:
                return frame[name]
        return self.root.get_key(name)


class _Unresolved(Exception):
    """Путь не разрешён; превращается в RenderError либо обрабатывается фильтром default."""

    def __init__(self, node: VarRefNode, message: str):
        super().__init__(message)
        self.node = node
        self.message = message


class TemplateEvaluator:
    """
    Вычислитель шаблонов.

    Один экземпляр можно использовать для любого числа рендеров:
    всё изменяемое состояние создаётся заново в render().
    """

    def __init__(self, limits: Optional[RenderLimits] = None):
        self.limits = limits or RenderLimits()

    def render(self, ast: TemplateAST, data: Value) -> str:
        """
        Рендерит AST против данных.

        Частичный результат при ошибке не возвращается.

        Raises:
            RenderError: Неразрешённая переменная, несовместимый тип, превышение лимитов
        """
        run = _RenderRun(RenderContext(data), self.limits)
        parts: List[str] = []
        try:
            run.render_nodes(ast, parts)
        except RecursionError:
            raise RenderError("Template nesting is too deep to render") from None
        result = "".join(parts)
        logger.debug(f"Rendered {len(ast)} nodes into {len(result)} chars ({run.iterations} loop iterations)")
        return result


class _RenderRun:
    """Состояние одного рендера: контекст, счётчик итераций, глубина."""

    def __init__(self, context: RenderContext, limits: RenderLimits):
        self.context = context
        self.limits = limits
        self.iterations = 0
        self._depth = 0

    # ---- Инструкции ----

    def render_nodes(self, nodes: List[TemplateNode], out: List[str]) -> None:
        for node in nodes:
            self.render_node(node, out)

    def render_node(self, node: TemplateNode, out: List[str]) -> None:
        if isinstance(node, TextNode):
            out.append(node.text)
        elif isinstance(node, OutputNode):
            out.append(self.evaluate(node.expr).to_text())
        elif isinstance(node, IfNode):
            self._render_if(node, out)
        elif isinstance(node, ForNode):
            self._render_for(node, out)
        else:
            raise RenderError(f"Unknown node type: {type(node).__name__}")

    def _render_if(self, node: IfNode, out: List[str]) -> None:
        with self._nested():
            if self.evaluate(node.condition).is_truthy():
                self.render_nodes(node.then_body, out)
            elif node.else_body is not None:
                self.render_nodes(node.else_body, out)

    def _render_for(self, node: ForNode, out: List[str]) -> None:
        iterable = self.evaluate(node.iterable)
        if iterable.kind not in (ValueKind.SEQUENCE, ValueKind.MAPPING):
            raise RenderError(
                f"Cannot iterate over {iterable.type_name} in 'for {node.loop_var}'"
                f"{_describe(node.iterable)}"
            )

        items = list(iterable.iter_items())
        length = len(items)

        with self._nested():
            for index, item in enumerate(items):
                self._count_iteration()
                # Переменная цикла с именем loop перекрывает метаданные
                self.context.push({
                    LOOP_KEY: _loop_info(index, length),
                    node.loop_var: item,
                })
                try:
                    self.render_nodes(node.body, out)
                finally:
                    self.context.pop()

    # ---- Выражения ----

    def evaluate(self, expr: ExprNode) -> Value:
        """Вычисляет выражение; неразрешённые пути превращаются в RenderError."""
        try:
            return self._evaluate(expr)
        except _Unresolved as e:
            raise RenderError(f"{e.message} at {e.node.line}:{e.node.column}") from None

    def _evaluate(self, expr: ExprNode) -> Value:
        if isinstance(expr, VarRefNode):
            return self._resolve(expr)
        elif isinstance(expr, LiteralNode):
            return Value.from_python(expr.value)
        elif isinstance(expr, NotNode):
            return Value.boolean(not self._evaluate(expr.operand).is_truthy())
        elif isinstance(expr, BinaryNode):
            return self._evaluate_binary(expr)
        elif isinstance(expr, CompareNode):
            return Value.boolean(_compare(expr.op, self._evaluate(expr.left), self._evaluate(expr.right)))
        elif isinstance(expr, FilterNode):
            return self._evaluate_filter(expr)
        raise RenderError(f"Unknown expression type: {type(expr).__name__}")

    def _evaluate_binary(self, expr: BinaryNode) -> Value:
        # Короткое вычисление; результат всегда логический
        left = self._evaluate(expr.left).is_truthy()
        if expr.op == "and":
            return Value.boolean(left and self._evaluate(expr.right).is_truthy())
        if expr.op == "or":
            return Value.boolean(left or self._evaluate(expr.right).is_truthy())
        raise RenderError(f"Unknown operator: {expr.op}")

    def _evaluate_filter(self, expr: FilterNode) -> Value:
        spec = get_filter(expr.name)
        if spec is None:
            raise RenderError(f"Unknown filter '{expr.name}'")

        # Мягко обрабатывается только путь непосредственно слева от фильтра
        if spec.lenient and isinstance(expr.expr, VarRefNode):
            try:
                value: Optional[Value] = self._evaluate(expr.expr)
            except _Unresolved:
                value = None
        else:
            value = self._evaluate(expr.expr)

        args = [self._evaluate(arg) for arg in expr.args]
        return spec.func(value, *args)

    def _resolve(self, node: VarRefNode) -> Value:
        """Разрешает путь: первый сегмент через стек контекста, остальные внутри значения."""
        head = node.path[0]
        value = self.context.lookup(head)
        if value is None:
            raise _Unresolved(node, f"Undefined variable '{head}'")

        for i, segment in enumerate(node.path[1:], start=1):
            if value.kind == ValueKind.MAPPING:
                nxt = value.get_key(segment)
            elif value.kind == ValueKind.SEQUENCE and segment.isdigit():
                nxt = value.get_index(int(segment))
            else:
                raise _Unresolved(
                    node,
                    f"Cannot access '{segment}' on {value.type_name} '{'.'.join(node.path[:i])}'",
                )
            if nxt is None:
                raise _Unresolved(node, f"Undefined variable '{'.'.join(node.path[:i + 1])}'")
            value = nxt

        return value

    # ---- Лимиты ----

    def _count_iteration(self) -> None:
        self.iterations += 1
        limit = self.limits.max_iterations
        if limit and self.iterations > limit:
            raise RenderError(f"Loop iteration budget exceeded ({limit} iterations)")

    def _nested(self) -> "_DepthGuard":
        return _DepthGuard(self)


class _DepthGuard:
    """Контекстный менеджер глубины вложенности блоков при рендеринге."""

    def __init__(self, run: _RenderRun):
        self.run = run

    def __enter__(self) -> None:
        self.run._depth += 1
        if self.run._depth > self.run.limits.max_depth:
            raise RenderError(f"Nesting exceeds maximum depth {self.run.limits.max_depth}")

    def __exit__(self, *exc) -> None:
        self.run._depth -= 1


def _loop_info(index: int, length: int) -> Value:
    return Value.mapping({
        "index": Value.number(index + 1),
        "index0": Value.number(index),
        "first": Value.boolean(index == 0),
        "last": Value.boolean(index == length - 1),
        "length": Value.number(length),
    })


def _compare(op: str, left: Value, right: Value) -> bool:
    """
    Сравнение значений.

    == и != — структурное равенство (bool не равен числу).
    Упорядочивание — только число с числом или строка со строкой.
    """
    if op == "==":
        return left == right
    if op == "!=":
        return left != right

    if left.kind != right.kind or left.kind not in (ValueKind.NUMBER, ValueKind.STRING):
        raise RenderError(f"Cannot compare {left.type_name} {op} {right.type_name}")

    if op == "<":
        return left.data < right.data
    if op == "<=":
        return left.data <= right.data
    if op == ">":
        return left.data > right.data
    if op == ">=":
        return left.data >= right.data
    raise RenderError(f"Unknown comparison operator: {op}")


def _describe(expr: ExprNode) -> str:
    if isinstance(expr, VarRefNode):
        return f" ('{expr.dotted}' at {expr.line}:{expr.column})"
    return ""


__all__ = ["TemplateEvaluator", "RenderContext", "RenderLimits", "DEFAULT_MAX_ITERATIONS"]
