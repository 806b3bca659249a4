"""
Встроенные фильтры выражений: {{ name | upper }}, {{ items | join(", ") }}.

Фильтр получает значение слева от | и вычисленные аргументы.
Имена и число аргументов проверяются при парсинге, типы — при рендеринге.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..data.model import Value, ValueKind
from ..errors import RenderError
from ..jsonic import dumps


@dataclass(frozen=True)
class FilterSpec:
    """
    Описание фильтра.

    lenient: фильтр принимает неразрешённую переменную (получает None вместо Value).
    """
    name: str
    func: Callable[..., Value]
    min_args: int = 0
    max_args: int = 0
    lenient: bool = False


def _expect(name: str, value: Value, *kinds: ValueKind) -> None:
    if value.kind not in kinds:
        expected = " or ".join(k.value for k in kinds)
        raise RenderError(f"Filter '{name}' expects {expected}, got {value.type_name}")


def _upper(value: Value) -> Value:
    _expect("upper", value, ValueKind.STRING)
    return Value.string(value.data.upper())


def _lower(value: Value) -> Value:
    _expect("lower", value, ValueKind.STRING)
    return Value.string(value.data.lower())


def _trim(value: Value) -> Value:
    _expect("trim", value, ValueKind.STRING)
    return Value.string(value.data.strip())


def _length(value: Value) -> Value:
    _expect("length", value, ValueKind.STRING, ValueKind.SEQUENCE, ValueKind.MAPPING)
    return Value.number(value.length())


def _json(value: Value) -> Value:
    return Value.string(dumps(value.to_python()))


def _default(value: Optional[Value], fallback: Value) -> Value:
    # Подменяет и неразрешённую переменную, и явный null
    if value is None or value.kind == ValueKind.NULL:
        return fallback
    return value


def _join(value: Value, separator: Optional[Value] = None) -> Value:
    _expect("join", value, ValueKind.SEQUENCE)
    sep = ""
    if separator is not None:
        _expect("join", separator, ValueKind.STRING)
        sep = separator.data
    return Value.string(sep.join(item.to_text() for item in value.data))


def _first(value: Value) -> Value:
    _expect("first", value, ValueKind.SEQUENCE, ValueKind.STRING)
    if not value.data:
        return Value.null()
    item = value.data[0]
    return Value.string(item) if value.kind == ValueKind.STRING else item


def _last(value: Value) -> Value:
    _expect("last", value, ValueKind.SEQUENCE, ValueKind.STRING)
    if not value.data:
        return Value.null()
    item = value.data[-1]
    return Value.string(item) if value.kind == ValueKind.STRING else item


BUILTIN_FILTERS: Dict[str, FilterSpec] = {
    spec.name: spec for spec in (
        FilterSpec("upper", _upper),
        FilterSpec("lower", _lower),
        FilterSpec("trim", _trim),
        FilterSpec("length", _length),
        FilterSpec("json", _json),
        FilterSpec("default", _default, min_args=1, max_args=1, lenient=True),
        FilterSpec("join", _join, min_args=0, max_args=1),
        FilterSpec("first", _first),
        FilterSpec("last", _last),
    )
}


def get_filter(name: str) -> Optional[FilterSpec]:
    """Возвращает описание фильтра по имени или None."""
    return BUILTIN_FILTERS.get(name)


__all__ = ["FilterSpec", "BUILTIN_FILTERS", "get_filter"]
