"""
Лексические типы шаблонизатора.

Определяет типы токенов и сам токен с позиционной информацией.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class TokenType(enum.Enum):
    """Типы токенов в шаблоне."""

    # Текстовый контент
    TEXT = "TEXT"
    ESCAPED_EXPR = "ESCAPED_EXPR"      # {{{{ -> литеральный {{

    # Разделители выражений
    EXPR_START = "EXPR_START"          # {{
    EXPR_END = "EXPR_END"              # }}

    # Разделители инструкций
    STMT_START = "STMT_START"          # {%
    STMT_END = "STMT_END"              # %}

    # Комментарий целиком: {# ... #}
    COMMENT = "COMMENT"

    # Содержимое тегов
    IDENTIFIER = "IDENTIFIER"
    KEYWORD = "KEYWORD"
    DOT = "DOT"                        # .
    STRING = "STRING"                  # "..." или '...'
    NUMBER = "NUMBER"
    OPERATOR = "OPERATOR"              # == != < <= > >=
    PIPE = "PIPE"                      # |
    COMMA = "COMMA"                    # ,
    LPAREN = "LPAREN"                  # (
    RPAREN = "RPAREN"                  # )

    # Служебные токены
    WHITESPACE = "WHITESPACE"
    EOF = "EOF"


# Ключевые слова внутри тегов
KEYWORDS = frozenset({
    "if", "elif", "else", "endif",
    "for", "in", "endfor",
    "and", "or", "not",
    "true", "false", "null", "none",
})


@dataclass(frozen=True)
class Token:
    """
    Токен с позиционной информацией для точной диагностики ошибок.

    value всегда совпадает с фрагментом исходного текста,
    поэтому склейка значений всех токенов восстанавливает шаблон.
    """
    type: TokenType
    value: str
    position: int        # Позиция в исходном тексте
    line: int            # Номер строки (начиная с 1)
    column: int          # Номер колонки (начиная с 1)

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "Token", "KEYWORDS"]
