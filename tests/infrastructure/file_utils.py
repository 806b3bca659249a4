"""
Утилиты для создания файлов шаблонов и данных в тестах.
"""

from __future__ import annotations

import json
import textwrap
from pathlib import Path
from typing import Any


def write(p: Path, text: str) -> Path:
    """
    Записывает текст в файл, создавая родительские директории при необходимости.

    Args:
        p: Путь к файлу
        text: Содержимое для записи

    Returns:
        Путь к созданному файлу
    """
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return p


def write_json(p: Path, obj: Any) -> Path:
    """Записывает объект как JSON-файл данных."""
    return write(p, json.dumps(obj, ensure_ascii=False, indent=2))


def write_yaml(p: Path, text: str) -> Path:
    """Записывает YAML-текст, убирая общий отступ (удобно для тройных кавычек)."""
    return write(p, textwrap.dedent(text).strip() + "\n")


__all__ = ["write", "write_json", "write_yaml"]
