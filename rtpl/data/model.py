"""
Модель значений для данных шаблонизатора.

Все входные данные (JSON, YAML, переменные окружения) приводятся к одному
размеченному типу Value. Правила истинности, приведения к тексту и сравнения
сосредоточены здесь и выбираются по ValueKind, а не по типам Python.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Tuple

from ..errors import DataError
from ..jsonic import dumps_compact


class ValueKind(Enum):
    """Типы значений в модели данных."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass(frozen=True, eq=True)
class Value:
    """
    Неизменяемое значение модели данных.

    Attributes:
        kind: Тип значения
        data: Полезная нагрузка:
            NULL -> None, BOOL -> bool, NUMBER -> int | float, STRING -> str,
            SEQUENCE -> tuple[Value, ...], MAPPING -> Mapping[str, Value] (только чтение)
    """
    kind: ValueKind
    data: Any = None

    # ---- Конструкторы ----

    @staticmethod
    def null() -> Value:
        return _NULL

    @staticmethod
    def boolean(flag: bool) -> Value:
        return _TRUE if flag else _FALSE

    @staticmethod
    def number(num: int | float) -> Value:
        return Value(ValueKind.NUMBER, num)

    @staticmethod
    def string(text: str) -> Value:
        return Value(ValueKind.STRING, text)

    @staticmethod
    def sequence(items: Tuple[Value, ...] | list) -> Value:
        return Value(ValueKind.SEQUENCE, tuple(items))

    @staticmethod
    def mapping(entries: Mapping[str, Value]) -> Value:
        # Копия защищает от изменений исходного словаря снаружи
        return Value(ValueKind.MAPPING, MappingProxyType(dict(entries)))

    @classmethod
    def from_python(cls, obj: Any, path: str = "$") -> Value:
        """
        Строит Value из результата json.loads / YAML-загрузчика.

        Args:
            obj: Python-объект (dict, list, str, int, float, bool, None, дата)
            path: Путь к объекту для сообщений об ошибках

        Raises:
            DataError: Для неподдерживаемых типов и ключей
        """
        if obj is None:
            return _NULL
        # bool проверяется раньше int: в Python bool — подкласс int
        if isinstance(obj, bool):
            return cls.boolean(obj)
        if isinstance(obj, (int, float)):
            return cls.number(obj)
        if isinstance(obj, str):
            return cls.string(obj)
        if isinstance(obj, (_dt.datetime, _dt.date)):
            # YAML-загрузчик превращает метки времени в даты
            return cls.string(obj.isoformat())
        if isinstance(obj, Mapping):
            entries = {}
            for key, item in obj.items():
                name = _mapping_key(key, path)
                entries[name] = cls.from_python(item, f"{path}.{name}")
            return cls.mapping(entries)
        if isinstance(obj, (list, tuple)):
            return cls.sequence([cls.from_python(item, f"{path}[{i}]") for i, item in enumerate(obj)])
        raise DataError(f"{path}: unsupported value type {type(obj).__name__}")

    # ---- Обратное преобразование ----

    def to_python(self) -> Any:
        """Возвращает обычные Python-объекты (dict/list/...) для сериализации."""
        if self.kind == ValueKind.SEQUENCE:
            return [item.to_python() for item in self.data]
        if self.kind == ValueKind.MAPPING:
            return {key: item.to_python() for key, item in self.data.items()}
        return self.data

    # ---- Семантика ----

    def is_truthy(self) -> bool:
        """
        Истинность значения в условиях.

        Ложны: null, false, 0, пустая строка, пустая последовательность или мапа.
        Всё остальное истинно.
        """
        if self.kind == ValueKind.NULL:
            return False
        elif self.kind == ValueKind.BOOL:
            return bool(self.data)
        elif self.kind == ValueKind.NUMBER:
            return self.data != 0
        elif self.kind in (ValueKind.STRING, ValueKind.SEQUENCE, ValueKind.MAPPING):
            return len(self.data) > 0
        raise AssertionError(f"Unknown value kind: {self.kind}")

    def to_text(self) -> str:
        """
        Текстовое представление для вывода {{ ... }}.

        null -> "", true/false в стиле JSON, коллекции — компактный JSON.
        """
        if self.kind == ValueKind.NULL:
            return ""
        elif self.kind == ValueKind.BOOL:
            return "true" if self.data else "false"
        elif self.kind == ValueKind.NUMBER:
            return _number_text(self.data)
        elif self.kind == ValueKind.STRING:
            return self.data
        elif self.kind in (ValueKind.SEQUENCE, ValueKind.MAPPING):
            return dumps_compact(self.to_python())
        raise AssertionError(f"Unknown value kind: {self.kind}")

    @property
    def type_name(self) -> str:
        return self.kind.value

    def length(self) -> Optional[int]:
        """Длина строки или коллекции; None для скаляров."""
        if self.kind in (ValueKind.STRING, ValueKind.SEQUENCE, ValueKind.MAPPING):
            return len(self.data)
        return None

    def get_key(self, key: str) -> Optional[Value]:
        """Элемент мапы по ключу или None."""
        if self.kind != ValueKind.MAPPING:
            return None
        return self.data.get(key)

    def get_index(self, index: int) -> Optional[Value]:
        """Элемент последовательности по индексу (отрицательные — с конца) или None."""
        if self.kind != ValueKind.SEQUENCE:
            return None
        if -len(self.data) <= index < len(self.data):
            return self.data[index]
        return None

    def iter_items(self) -> Iterator[Value]:
        """
        Элементы для цикла for.

        Последовательность — по порядку, мапа — значения в порядке вставки ключей.

        Raises:
            TypeError: Для скаляров
        """
        if self.kind == ValueKind.SEQUENCE:
            return iter(self.data)
        if self.kind == ValueKind.MAPPING:
            return iter(self.data.values())
        raise TypeError(f"{self.type_name} is not iterable")

    def __repr__(self) -> str:
        return f"Value({self.kind.name}, {self.to_python()!r})"


_NULL = Value(ValueKind.NULL, None)
_TRUE = Value(ValueKind.BOOL, True)
_FALSE = Value(ValueKind.BOOL, False)


def _mapping_key(key: Any, path: str) -> str:
    if isinstance(key, str):
        return key
    # YAML допускает скалярные ключи (1: x, true: y) — приводим к строке
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float)):
        return _number_text(key)
    raise DataError(f"{path}: unsupported mapping key {key!r}")


def _number_text(num: int | float) -> str:
    # repr даёт кратчайшую точную запись: 3 -> "3", 2.5 -> "2.5", 3.0 -> "3.0"
    return repr(num)


__all__ = ["Value", "ValueKind"]
