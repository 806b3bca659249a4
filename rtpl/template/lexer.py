"""
Лексический анализатор шаблонов.

Токенизирует исходный текст шаблона, разбивая его на последовательность
токенов для последующего синтаксического анализа. Работает в двух режимах:
- обычный текст (ищется ближайший открывающий маркер)
- внутри тега {{ ... }} или {% ... %} (идентификаторы, литералы, операторы)
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, List, Optional

from .tokens import KEYWORDS, Token, TokenType
from ..errors import TemplateSyntaxError

logger = logging.getLogger(__name__)


class TemplateLexer:
    """
    Лексический анализатор шаблонов.

    Маркеры ищутся жадно и слева направо: побеждает первое вхождение
    {{{{, {{, {% или {# после текущей позиции. Одиночные }} и %} вне тегов
    остаются обычным текстом.
    """

    # Открывающие маркеры в текстовом режиме; {{{{ должен проверяться раньше {{
    _OPEN_RE = re.compile(r'\{\{\{\{|\{\{|\{%|\{#')

    _OPENERS = {
        "{{": (TokenType.EXPR_START, "}}", TokenType.EXPR_END),
        "{%": (TokenType.STMT_START, "%}", TokenType.STMT_END),
    }

    # Регулярные выражения для содержимого тегов
    _PATTERNS = {
        TokenType.WHITESPACE: re.compile(r'\s+'),
        TokenType.STRING: re.compile(r'"(?:[^"\\\n]|\\.)*"|\'(?:[^\'\\\n]|\\.)*\''),
        TokenType.NUMBER: re.compile(r'-?\d+(?:\.\d+)?'),
        TokenType.OPERATOR: re.compile(r'==|!=|<=|>=|<|>'),
        TokenType.IDENTIFIER: re.compile(r'[A-Za-z_][A-Za-z0-9_]*'),
    }

    # Сегмент пути после точки: только целое число (items.0.1 — два индекса)
    _INDEX_RE = re.compile(r'\d+')

    _SYMBOLS = {
        ".": TokenType.DOT,
        "|": TokenType.PIPE,
        ",": TokenType.COMMA,
        "(": TokenType.LPAREN,
        ")": TokenType.RPAREN,
    }

    def __init__(self, text: str):
        self.text = text
        self.length = len(text)
        self.position = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> List[Token]:
        """
        Токенизирует весь исходный текст и возвращает список токенов.

        Raises:
            TemplateSyntaxError: При незакрытом теге или неожиданном символе
        """
        tokens = list(self.iter_tokens())
        logger.debug(f"Tokenized template into {len(tokens)} tokens")
        return tokens

    def iter_tokens(self) -> Iterator[Token]:
        """
        Ленивая токенизация; последний токен — EOF.

        Каждый вызов начинает разбор заново с начала текста.
        """
        self.position = 0
        self.line = 1
        self.column = 1

        while self.position < self.length:
            match = self._OPEN_RE.search(self.text, self.position)
            if match is None:
                yield self._emit(TokenType.TEXT, self.length - self.position)
                break

            if match.start() > self.position:
                yield self._emit(TokenType.TEXT, match.start() - self.position)

            opener = match.group(0)
            if opener == "{{{{":
                yield self._emit(TokenType.ESCAPED_EXPR, len(opener))
            elif opener == "{#":
                yield self._read_comment()
            else:
                yield from self._read_tag(opener)

        yield Token(TokenType.EOF, "", self.position, self.line, self.column)

    # ======= Внутренние методы =======

    def _read_comment(self) -> Token:
        """Комментарий {# ... #} выдаётся одним токеном."""
        end = self.text.find("#}", self.position + 2)
        if end < 0:
            raise TemplateSyntaxError("Unclosed comment '{#'", self.line, self.column)
        return self._emit(TokenType.COMMENT, end + 2 - self.position)

    def _read_tag(self, opener: str) -> Iterator[Token]:
        """Токенизирует тег от открывающего до закрывающего маркера."""
        start_type, closer, end_type = self._OPENERS[opener]
        open_line, open_column = self.line, self.column
        yield self._emit(start_type, len(opener))

        previous: Optional[TokenType] = None
        while True:
            if self.position >= self.length:
                raise TemplateSyntaxError(f"Unclosed '{opener}', expected '{closer}'", open_line, open_column)

            if self.text.startswith(closer, self.position):
                yield self._emit(end_type, len(closer))
                return

            token = self._match_inside_tag(previous)
            if token.type != TokenType.WHITESPACE:
                previous = token.type
            yield token

    def _match_inside_tag(self, previous: Optional[TokenType]) -> Token:
        """Извлекает один токен содержимого тега."""
        pos = self.position
        char = self.text[pos]

        match = self._PATTERNS[TokenType.WHITESPACE].match(self.text, pos)
        if match:
            return self._emit(TokenType.WHITESPACE, len(match.group(0)))

        if previous == TokenType.DOT:
            # Сегмент пути: индекс или имя, ключевые слова здесь не действуют
            match = self._INDEX_RE.match(self.text, pos)
            if match:
                return self._emit(TokenType.NUMBER, len(match.group(0)))
            match = self._PATTERNS[TokenType.IDENTIFIER].match(self.text, pos)
            if match:
                return self._emit(TokenType.IDENTIFIER, len(match.group(0)))

        if char in "\"'":
            match = self._PATTERNS[TokenType.STRING].match(self.text, pos)
            if not match:
                raise TemplateSyntaxError("Unterminated string literal", self.line, self.column)
            return self._emit(TokenType.STRING, len(match.group(0)))

        for token_type in (TokenType.NUMBER, TokenType.OPERATOR):
            match = self._PATTERNS[token_type].match(self.text, pos)
            if match:
                return self._emit(token_type, len(match.group(0)))

        match = self._PATTERNS[TokenType.IDENTIFIER].match(self.text, pos)
        if match:
            value = match.group(0)
            token_type = TokenType.KEYWORD if value in KEYWORDS else TokenType.IDENTIFIER
            return self._emit(token_type, len(value))

        symbol_type = self._SYMBOLS.get(char)
        if symbol_type is not None:
            return self._emit(symbol_type, 1)

        raise TemplateSyntaxError(f"Unexpected character {char!r} in tag", self.line, self.column)

    def _emit(self, token_type: TokenType, count: int) -> Token:
        """Создаёт токен из следующих count символов и сдвигает позицию."""
        token = Token(
            token_type,
            self.text[self.position:self.position + count],
            self.position,
            self.line,
            self.column,
        )
        self._advance(count)
        return token

    def _advance(self, count: int) -> None:
        """
        Перемещает позицию на указанное количество символов,
        обновляя номера строк и колонок.
        """
        chunk = self.text[self.position:self.position + count]
        newlines = chunk.count("\n")
        if newlines:
            self.line += newlines
            self.column = count - chunk.rfind("\n")
        else:
            self.column += count
        self.position += count


def tokenize_template(text: str) -> List[Token]:
    """
    Удобная функция для токенизации шаблона.

    Args:
        text: Исходный текст шаблона

    Returns:
        Список токенов

    Raises:
        TemplateSyntaxError: При ошибке лексического анализа
    """
    lexer = TemplateLexer(text)
    return lexer.tokenize()


__all__ = ["TemplateLexer", "tokenize_template"]
