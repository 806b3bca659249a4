"""
Base exception for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from RtplUserError.
Each class carries the process exit code the CLI reports for it.

Programming errors and bugs should NOT inherit from RtplUserError —
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import Optional


class RtplUserError(Exception):
    """
    Base class for all user-facing errors in rtpl.

    These errors indicate problems that the user can fix:
    broken templates, invalid data, missing files, bad options.
    """
    exit_code: int = 1


class TemplateLoadError(RtplUserError):
    """Шаблон не удалось прочитать (файл отсутствует, нет прав, битая кодировка)."""
    pass


class OutputError(RtplUserError):
    """Результат рендеринга не удалось записать."""
    pass


class TemplateSyntaxError(RtplUserError):
    """
    Синтаксическая ошибка шаблона.

    Обнаруживается лексером или парсером до начала вычисления.
    Содержит позицию ошибки в исходном тексте (строки и колонки с 1).
    """
    exit_code = 3

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        if line is not None and column is not None:
            super().__init__(f"{message} at {line}:{column}")
        else:
            super().__init__(message)
        self.message = message
        self.line = line
        self.column = column


class DataError(RtplUserError):
    """Входные данные некорректны или недоступны."""
    exit_code = 4


class RenderError(RtplUserError):
    """
    Ошибка вычисления шаблона.

    Неразрешённая переменная, несовместимый тип в условии или цикле,
    превышение лимита итераций.
    """
    exit_code = 5


__all__ = [
    "RtplUserError",
    "TemplateLoadError",
    "OutputError",
    "TemplateSyntaxError",
    "DataError",
    "RenderError",
]
