"""
Парсер шаблонов.

Преобразует последовательность токенов в AST (абстрактное синтаксическое дерево)
с поддержкой вывода выражений, условных блоков и циклов.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Tuple

from .expressions import ExpressionParser
from .lexer import TemplateLexer
from .nodes import (
    ExprNode,
    ForNode,
    IfNode,
    OutputNode,
    TemplateAST,
    TemplateNode,
    TextNode,
)
from .tokens import Token, TokenType
from ..errors import TemplateSyntaxError

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 64
MAX_DEPTH_LIMIT = 128

_STATEMENT_KEYWORDS = frozenset({"if", "elif", "else", "endif", "for", "endfor"})
_IF_STOP = frozenset({"elif", "else", "endif"})
_FOR_STOP = frozenset({"endfor"})


@dataclass(frozen=True)
class _Statement:
    """Разобранный заголовок инструкции {% keyword args... %}."""
    keyword: str
    token: Token            # токен ключевого слова (позиция для ошибок)
    args: List[Token]       # значимые токены после ключевого слова
    end: Token              # токен %}


class TemplateParser:
    """
    Рекурсивный парсер для шаблонов.

    Тела if/for разбираются как вложенные последовательности узлов до
    закрывающей инструкции того же уровня. Глубина вложенности ограничена
    max_depth.
    """

    def __init__(self, tokens: List[Token], max_depth: int = DEFAULT_MAX_DEPTH):
        self.tokens = tokens
        self.position = 0
        self.max_depth = max_depth
        self._depth = 0

    def parse(self) -> TemplateAST:
        """
        Парсит всю последовательность токенов в AST.

        Returns:
            Список корневых узлов AST

        Raises:
            TemplateSyntaxError: При ошибке синтаксического анализа
        """
        self.position = 0
        self._depth = 0

        try:
            ast, stop = self._parse_body(frozenset())
        except RecursionError:
            raise self._error("Template nesting is too deep", self._current_token()) from None
        # С пустым набором стоп-слов _parse_body возвращается только на EOF
        assert stop is None

        logger.debug(f"Parsed AST with {len(ast)} top-level nodes")
        return ast

    def _parse_body(self, stop_keywords: FrozenSet[str]) -> Tuple[List[TemplateNode], Optional[_Statement]]:
        """
        Парсит узлы до одной из стоп-инструкций или конца токенов.

        Returns:
            (узлы, стоп-инструкция) — стоп-инструкция None при достижении EOF
        """
        nodes: List[TemplateNode] = []

        while not self._is_at_end():
            current = self._current_token()

            if current.type == TokenType.TEXT:
                self._advance()
                self._append_text(nodes, current.value)
            elif current.type == TokenType.ESCAPED_EXPR:
                self._advance()
                self._append_text(nodes, "{{")
            elif current.type == TokenType.COMMENT:
                # Комментарии не попадают в AST
                self._advance()
            elif current.type == TokenType.EXPR_START:
                nodes.append(self._parse_output())
            elif current.type == TokenType.STMT_START:
                statement = self._read_statement()
                if statement.keyword in stop_keywords:
                    return nodes, statement
                nodes.append(self._parse_statement(statement))
            else:
                raise self._error(f"Unexpected token {current.type.name}", current)

        return nodes, None

    def _parse_output(self) -> OutputNode:
        """Парсит вывод {{ expr }}."""
        self._consume(TokenType.EXPR_START)
        content = self._collect_tag_content(TokenType.EXPR_END)
        end = self._consume(TokenType.EXPR_END)
        return OutputNode(expr=self._parse_expression(content, end))

    def _parse_statement(self, statement: _Statement) -> TemplateNode:
        """Парсит открывающую инструкцию (if/for) вместе с её телом."""
        if statement.keyword == "if":
            return self._parse_if(statement)
        if statement.keyword == "for":
            return self._parse_for(statement)
        if statement.keyword in ("elif", "else", "endif"):
            raise self._error(f"'{statement.keyword}' without 'if'", statement.token)
        raise self._error(f"'{statement.keyword}' without 'for'", statement.token)

    def _parse_if(self, statement: _Statement) -> IfNode:
        """
        Парсит {% if %} с цепочкой elif и необязательным else.

        elif сворачивается во вложенный IfNode внутри else_body.
        """
        self._enter_block(statement)
        try:
            branches: List[Tuple[ExprNode, List[TemplateNode]]] = []
            else_body: Optional[List[TemplateNode]] = None
            condition = self._parse_condition(statement)

            while True:
                body, end = self._parse_body(_IF_STOP)
                if end is None:
                    raise self._error("Unclosed 'if', expected {% endif %}", statement.token)
                branches.append((condition, body))

                if end.keyword == "elif":
                    condition = self._parse_condition(end)
                    continue

                if end.keyword == "else":
                    self._expect_no_args(end)
                    else_body, end = self._parse_body(_IF_STOP)
                    if end is None:
                        raise self._error("Unclosed 'if', expected {% endif %}", statement.token)
                    if end.keyword != "endif":
                        raise self._error(f"Unexpected '{end.keyword}' after 'else'", end.token)

                self._expect_no_args(end)
                break
        finally:
            self._depth -= 1

        node: Optional[IfNode] = None
        tail = else_body
        for condition, body in reversed(branches):
            node = IfNode(condition=condition, then_body=body, else_body=tail)
            tail = [node]
        assert node is not None
        return node

    def _parse_for(self, statement: _Statement) -> ForNode:
        """Парсит цикл {% for name in expr %}...{% endfor %}."""
        self._enter_block(statement)
        try:
            args = statement.args
            if not args or args[0].type != TokenType.IDENTIFIER:
                raise self._error("Expected loop variable name after 'for'", args[0] if args else statement.end)
            loop_var = args[0].value

            if len(args) < 2 or args[1].type != TokenType.KEYWORD or args[1].value != "in":
                raise self._error("Expected 'in' after loop variable", args[1] if len(args) > 1 else statement.end)

            iterable = self._parse_expression(args[2:], statement.end)

            body, end = self._parse_body(_FOR_STOP)
            if end is None:
                raise self._error("Unclosed 'for', expected {% endfor %}", statement.token)
            self._expect_no_args(end)
        finally:
            self._depth -= 1

        return ForNode(loop_var=loop_var, iterable=iterable, body=body)

    # ======= Вспомогательные методы =======

    def _read_statement(self) -> _Statement:
        """Потребляет {% ... %} и возвращает разобранный заголовок."""
        start = self._consume(TokenType.STMT_START)
        content = self._collect_tag_content(TokenType.STMT_END)
        end = self._consume(TokenType.STMT_END)

        if not content:
            raise self._error("Empty statement", start)

        keyword = content[0]
        if keyword.type != TokenType.KEYWORD or keyword.value not in _STATEMENT_KEYWORDS:
            raise self._error(f"Unknown statement '{keyword.value}'", keyword)

        return _Statement(keyword=keyword.value, token=keyword, args=content[1:], end=end)

    def _collect_tag_content(self, end_type: TokenType) -> List[Token]:
        """Собирает значимые токены до закрывающего маркера (без пробелов)."""
        content: List[Token] = []
        while not self._is_at_end() and self._current_token().type != end_type:
            token = self._advance()
            if token.type != TokenType.WHITESPACE:
                content.append(token)
        return content

    def _parse_condition(self, statement: _Statement) -> ExprNode:
        if not statement.args:
            raise self._error(f"Missing condition in '{statement.keyword}'", statement.token)
        return self._parse_expression(statement.args, statement.end)

    def _parse_expression(self, tokens: List[Token], end: Token) -> ExprNode:
        return ExpressionParser(tokens, end, max_depth=self.max_depth).parse()

    def _expect_no_args(self, statement: _Statement) -> None:
        if statement.args:
            raise self._error(
                f"Unexpected token '{statement.args[0].value}' in '{statement.keyword}'",
                statement.args[0],
            )

    def _enter_block(self, statement: _Statement) -> None:
        self._depth += 1
        if self._depth > self.max_depth:
            raise self._error(f"Nesting exceeds maximum depth {self.max_depth}", statement.token)

    @staticmethod
    def _append_text(nodes: List[TemplateNode], text: str) -> None:
        # Объединяем с предыдущим TextNode если возможно
        if nodes and isinstance(nodes[-1], TextNode):
            nodes[-1] = TextNode(text=nodes[-1].text + text)
        else:
            nodes.append(TextNode(text=text))

    def _current_token(self) -> Token:
        """Возвращает текущий токен."""
        if self.position >= len(self.tokens):
            # Возвращаем EOF токен если достигли конца
            last_token = self.tokens[-1] if self.tokens else Token(TokenType.EOF, "", 0, 1, 1)
            return Token(TokenType.EOF, "", last_token.position, last_token.line, last_token.column)
        return self.tokens[self.position]

    def _advance(self) -> Token:
        """Продвигается к следующему токену и возвращает предыдущий."""
        current = self._current_token()
        if not self._is_at_end():
            self.position += 1
        return current

    def _is_at_end(self) -> bool:
        """Проверяет, достигли ли мы конца токенов."""
        return (self.position >= len(self.tokens) or
                self._current_token().type == TokenType.EOF)

    def _consume(self, expected_type: TokenType) -> Token:
        """
        Потребляет токен ожидаемого типа.

        Raises:
            TemplateSyntaxError: Если токен не соответствует ожидаемому типу
        """
        current = self._current_token()
        if current.type != expected_type:
            raise self._error(f"Expected {expected_type.name}, got {current.type.name}", current)
        return self._advance()

    @staticmethod
    def _error(message: str, token: Token) -> TemplateSyntaxError:
        return TemplateSyntaxError(message, token.line, token.column)


def parse_template(text: str, max_depth: int = DEFAULT_MAX_DEPTH) -> TemplateAST:
    """
    Удобная функция для парсинга шаблона из текста.

    Args:
        text: Исходный текст шаблона
        max_depth: Максимальная вложенность блоков if/for

    Returns:
        AST шаблона

    Raises:
        TemplateSyntaxError: При ошибке лексического или синтаксического анализа
    """
    lexer = TemplateLexer(text)
    tokens = lexer.tokenize()

    parser = TemplateParser(tokens, max_depth=max_depth)
    return parser.parse()


__all__ = ["TemplateParser", "parse_template", "DEFAULT_MAX_DEPTH", "MAX_DEPTH_LIMIT"]
