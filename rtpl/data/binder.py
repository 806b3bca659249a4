"""
Загрузка входных данных в модель Value.

Тонкий адаптер: встроенный JSON, файлы JSON/YAML, stdin и переменные окружения
с префиксом нормализуются в единое дерево Value, поэтому вычислитель
не различает происхождение данных.
"""

from __future__ import annotations

import enum
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .model import Value, ValueKind
from ..errors import DataError

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")

_YAML_SUFFIXES = {".yaml", ".yml"}

ENV_KEY = "_ENV"

RawInput = Union[str, bytes, Path]


class DataSourceKind(enum.Enum):
    """Вид источника данных."""
    INLINE_JSON = "inline-json"
    FILE_PATH = "file"
    ENV_PREFIX = "env-prefix"
    STDIN = "stdin"


@dataclass(frozen=True)
class DataSource:
    """
    Один источник данных из командной строки.

    raw: JSON-текст, путь к файлу, префикс переменных или содержимое stdin.
    """
    kind: DataSourceKind
    raw: RawInput

    def describe(self) -> str:
        if self.kind == DataSourceKind.FILE_PATH:
            return f"file {self.raw}"
        if self.kind == DataSourceKind.ENV_PREFIX:
            return f"environment prefix {self.raw!r}"
        return self.kind.value


def bind(raw: RawInput, kind: DataSourceKind, *, environ: Optional[Mapping[str, str]] = None) -> Value:
    """
    Загружает один источник данных в Value.

    Args:
        raw: Содержимое или ссылка на источник (зависит от kind)
        kind: Вид источника
        environ: Переменные окружения (по умолчанию os.environ)

    Returns:
        Корневое значение

    Raises:
        DataError: Битый JSON/YAML, недоступный файл, пустой префикс без совпадений
    """
    if kind == DataSourceKind.INLINE_JSON:
        return _parse_json(_as_text(raw, "inline data"), "inline data")
    elif kind == DataSourceKind.STDIN:
        return _parse_json(_as_text(raw, "stdin"), "stdin")
    elif kind == DataSourceKind.FILE_PATH:
        return load_data_file(Path(os.fsdecode(raw)))
    elif kind == DataSourceKind.ENV_PREFIX:
        return _bind_env_prefix(_as_text(raw, "environment prefix"), os.environ if environ is None else environ)
    raise DataError(f"Unsupported data source: {kind}")


def load_data_file(path: Path) -> Value:
    """
    Читает файл данных: .yaml/.yml через ruamel.yaml, остальное как JSON.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise DataError(f"Data file not found: {path}")
    except (OSError, UnicodeDecodeError) as e:
        raise DataError(f"Failed to read data file {path}: {e}") from e

    logger.debug("Loading data file %s (%d chars)", path, len(text))
    if path.suffix.lower() in _YAML_SUFFIXES:
        return _parse_yaml(text, str(path))
    return _parse_json(text, str(path))


def load_data(
    sources: Sequence[DataSource],
    *,
    environ: Optional[Mapping[str, str]] = None,
    include_env: bool = True,
) -> Value:
    """
    Загружает и объединяет все источники в порядке перечисления.

    Без источников корнем становится пустая мапа. При include_env в корневую
    мапу добавляется _ENV со всеми переменными окружения.
    """
    env = os.environ if environ is None else environ

    result = Value.mapping({})
    for i, source in enumerate(sources):
        value = bind(source.raw, source.kind, environ=env)
        logger.debug("Bound %s -> %s", source.describe(), value.type_name)
        result = value if i == 0 else merge_values(result, value)

    if include_env:
        result = with_environment(result, env)
    return result


def merge_values(base: Value, overlay: Value) -> Value:
    """
    Поверхностно объединяет две корневые мапы; ключи overlay перекрывают base.

    Raises:
        DataError: Если один из корней не мапа
    """
    if base.kind != ValueKind.MAPPING or overlay.kind != ValueKind.MAPPING:
        raise DataError(
            f"Cannot combine data sources: expected mappings, got {base.type_name} and {overlay.type_name}"
        )
    merged = dict(base.data)
    merged.update(overlay.data)
    return Value.mapping(merged)


def with_environment(value: Value, environ: Mapping[str, str]) -> Value:
    """Добавляет _ENV в корневую мапу; прочие корни возвращаются без изменений."""
    if value.kind != ValueKind.MAPPING:
        return value
    env_map = Value.mapping({k: Value.string(v) for k, v in sorted(environ.items())})
    merged = dict(value.data)
    merged[ENV_KEY] = env_map
    return Value.mapping(merged)


# ======= Внутренние функции =======

def _as_text(raw: RawInput, what: str) -> str:
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DataError(f"Failed to decode {what} as UTF-8: {e}") from e
    return str(raw)


def _parse_json(text: str, origin: str) -> Value:
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise DataError(f"Failed to parse JSON from {origin}: {e.msg} at {e.lineno}:{e.colno}") from e
    except RecursionError as e:
        raise DataError(f"Failed to parse JSON from {origin}: nesting too deep") from e
    return _to_value(obj, origin)


def _parse_yaml(text: str, origin: str) -> Value:
    try:
        obj = _yaml.load(text)
    except YAMLError as e:
        raise DataError(f"Failed to parse YAML from {origin}: {e}") from e
    return _to_value(obj, origin)


def _to_value(obj: Any, origin: str) -> Value:
    try:
        return Value.from_python(obj)
    except RecursionError as e:
        raise DataError(f"Data from {origin} is nested too deeply") from e


def _bind_env_prefix(prefix: str, environ: Mapping[str, str]) -> Value:
    if not prefix:
        raise DataError("Environment prefix must not be empty")

    entries = {
        name[len(prefix):]: Value.string(value)
        for name, value in sorted(environ.items())
        if name.startswith(prefix) and len(name) > len(prefix)
    }
    if not entries:
        raise DataError(f"No environment variables match prefix {prefix!r}")
    return Value.mapping(entries)


__all__ = [
    "DataSourceKind",
    "DataSource",
    "bind",
    "load_data",
    "load_data_file",
    "merge_values",
    "with_environment",
    "ENV_KEY",
]
