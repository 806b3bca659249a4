from __future__ import annotations

import json
from typing import Any


def dumps(obj: Any) -> str:
    """
    Минимальный JSON-дампер для ответов CLI и фильтра json.
    — без prettify; ensure_ascii=False; без заботы о завершающем \n (CLI решает сам).
    """
    return json.dumps(obj, ensure_ascii=False)


def dumps_compact(obj: Any) -> str:
    """Компактная форма без пробелов после разделителей (вывод коллекций в шаблоне)."""
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"))


__all__ = ["dumps", "dumps_compact"]
