"""
Парсер выражений внутри тегов с рекурсивным спуском.

Строит узлы-выражения из токенов содержимого {{ ... }} или {% if ... %}.
Поддерживает приоритеты операторов, группировку в скобках и цепочки фильтров.

Грамматика:
expression → or_expr
or_expr    → and_expr ("or" and_expr)*
and_expr   → not_expr ("and" not_expr)*
not_expr   → "not" not_expr | comparison
comparison → filtered (OPERATOR filtered)?
filtered   → primary ("|" IDENTIFIER ("(" arguments ")")?)*
primary    → path | STRING | NUMBER | true | false | null | none | "(" expression ")"
path       → IDENTIFIER ("." (IDENTIFIER | NUMBER))*
"""

from __future__ import annotations

from typing import List, Tuple

from .filters import get_filter
from .nodes import (
    BinaryNode,
    CompareNode,
    ExprNode,
    FilterNode,
    LiteralNode,
    NotNode,
    VarRefNode,
)
from .tokens import Token, TokenType
from ..errors import TemplateSyntaxError

_LITERAL_KEYWORDS = {
    "true": True,
    "false": False,
    "null": None,
    "none": None,
}

_STRING_ESCAPES = {"n": "\n", "t": "\t", "r": "\r"}


class ExpressionParser:
    """
    Парсер выражения из уже выделенных токенов тега (без пробельных токенов).

    end_token используется как позиция для ошибок «неожиданный конец выражения».
    """

    def __init__(self, tokens: List[Token], end_token: Token, max_depth: int = 64):
        self._tokens = tokens
        self._end_token = end_token
        self._position = 0
        self._max_depth = max_depth
        self._depth = 0

    def parse(self) -> ExprNode:
        """
        Парсит всё выражение целиком.

        Raises:
            TemplateSyntaxError: При синтаксической ошибке или лишних токенах
        """
        if not self._tokens:
            raise self._error("Empty expression", self._end_token)

        result = self._parse_expression()

        if not self._is_at_end():
            current = self._current_token()
            raise self._error(f"Unexpected token '{current.value}'", current)

        return result

    def _parse_expression(self) -> ExprNode:
        """Парсит полное выражение (начальный символ грамматики)."""
        self._depth += 1
        if self._depth > self._max_depth:
            raise self._error(f"Expression nesting exceeds maximum depth {self._max_depth}", self._current_token())
        try:
            return self._parse_or_expression()
        finally:
            self._depth -= 1

    def _parse_or_expression(self) -> ExprNode:
        """Парсит выражение с оператором or (низший приоритет)."""
        left = self._parse_and_expression()

        while self._match_keyword("or"):
            right = self._parse_and_expression()
            left = BinaryNode(op="or", left=left, right=right)

        return left

    def _parse_and_expression(self) -> ExprNode:
        """Парсит выражение с оператором and (средний приоритет)."""
        left = self._parse_not_expression()

        while self._match_keyword("and"):
            right = self._parse_not_expression()
            left = BinaryNode(op="and", left=left, right=right)

        return left

    def _parse_not_expression(self) -> ExprNode:
        """Парсит выражение с оператором not (высокий приоритет)."""
        if self._match_keyword("not"):
            # Правая ассоциативность: not not x; глубина ограничена как у скобок
            self._depth += 1
            if self._depth > self._max_depth:
                raise self._error(f"Expression nesting exceeds maximum depth {self._max_depth}", self._current_token())
            try:
                return NotNode(operand=self._parse_not_expression())
            finally:
                self._depth -= 1

        return self._parse_comparison()

    def _parse_comparison(self) -> ExprNode:
        """Парсит сравнение; цепочки вида a < b < c не поддерживаются."""
        left = self._parse_filtered()

        current = self._current_token()
        if current.type == TokenType.OPERATOR:
            self._advance()
            right = self._parse_filtered()
            return CompareNode(op=current.value, left=left, right=right)

        return left

    def _parse_filtered(self) -> ExprNode:
        """Парсит первичное выражение с цепочкой фильтров."""
        expr = self._parse_primary()

        while self._match_type(TokenType.PIPE):
            name_token = self._current_token()
            if name_token.type != TokenType.IDENTIFIER:
                raise self._error("Expected filter name after '|'", name_token)
            self._advance()

            spec = get_filter(name_token.value)
            if spec is None:
                raise self._error(f"Unknown filter '{name_token.value}'", name_token)

            args: Tuple[ExprNode, ...] = ()
            if self._match_type(TokenType.LPAREN):
                args = self._parse_arguments()

            if not spec.min_args <= len(args) <= spec.max_args:
                raise self._error(
                    f"Filter '{spec.name}' takes {self._arity_text(spec.min_args, spec.max_args)}, got {len(args)}",
                    name_token,
                )
            expr = FilterNode(expr=expr, name=spec.name, args=args)

        return expr

    def _parse_arguments(self) -> Tuple[ExprNode, ...]:
        """Парсит аргументы фильтра после '(' до ')'."""
        args: List[ExprNode] = []
        if self._match_type(TokenType.RPAREN):
            return ()

        while True:
            args.append(self._parse_expression())
            if self._match_type(TokenType.RPAREN):
                return tuple(args)
            if not self._match_type(TokenType.COMMA):
                raise self._error("Expected ',' or ')' in filter arguments", self._current_token())

    def _parse_primary(self) -> ExprNode:
        """Парсит первичное выражение (путь, литерал, группа в скобках)."""
        current = self._current_token()

        if self._match_type(TokenType.LPAREN):
            expr = self._parse_expression()
            if not self._match_type(TokenType.RPAREN):
                raise self._error("Expected ')' after grouped expression", self._current_token())
            return expr

        if current.type == TokenType.IDENTIFIER:
            return self._parse_path()

        if current.type == TokenType.STRING:
            self._advance()
            return LiteralNode(value=_unquote(current.value))

        if current.type == TokenType.NUMBER:
            self._advance()
            return LiteralNode(value=_number(current.value))

        if current.type == TokenType.KEYWORD and current.value in _LITERAL_KEYWORDS:
            self._advance()
            return LiteralNode(value=_LITERAL_KEYWORDS[current.value])

        if current.type == TokenType.EOF:
            raise self._error("Unexpected end of expression", current)
        raise self._error(f"Unexpected token '{current.value}'", current)

    def _parse_path(self) -> VarRefNode:
        """Парсит путь к переменной: name(.segment)*"""
        first = self._advance()
        segments = [first.value]

        while self._match_type(TokenType.DOT):
            segment = self._current_token()
            if segment.type == TokenType.IDENTIFIER or (
                segment.type == TokenType.NUMBER and segment.value.isdigit()
            ):
                segments.append(segment.value)
                self._advance()
            else:
                raise self._error(f"Malformed variable path '{'.'.join(segments)}.'", segment)

        return VarRefNode(path=tuple(segments), line=first.line, column=first.column)

    # ======= Навигация по токенам =======

    def _current_token(self) -> Token:
        if self._position >= len(self._tokens):
            end = self._end_token
            return Token(TokenType.EOF, "", end.position, end.line, end.column)
        return self._tokens[self._position]

    def _advance(self) -> Token:
        current = self._current_token()
        if not self._is_at_end():
            self._position += 1
        return current

    def _is_at_end(self) -> bool:
        return self._position >= len(self._tokens)

    def _match_type(self, token_type: TokenType) -> bool:
        if self._current_token().type == token_type:
            self._advance()
            return True
        return False

    def _match_keyword(self, keyword: str) -> bool:
        current = self._current_token()
        if current.type == TokenType.KEYWORD and current.value == keyword:
            self._advance()
            return True
        return False

    @staticmethod
    def _arity_text(min_args: int, max_args: int) -> str:
        if min_args == max_args:
            return f"{min_args} argument(s)"
        return f"{min_args} to {max_args} arguments"

    @staticmethod
    def _error(message: str, token: Token) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, token.line, token.column)


def _unquote(raw: str) -> str:
    """Снимает кавычки и раскрывает escape-последовательности \\n \\t \\r \\\\ \\" \\'."""
    body = raw[1:-1]
    if "\\" not in body:
        return body

    out: List[str] = []
    i = 0
    while i < len(body):
        char = body[i]
        if char == "\\" and i + 1 < len(body):
            nxt = body[i + 1]
            out.append(_STRING_ESCAPES.get(nxt, nxt))
            i += 2
        else:
            out.append(char)
            i += 1
    return "".join(out)


def _number(raw: str) -> int | float:
    return float(raw) if "." in raw else int(raw)


__all__ = ["ExpressionParser"]
