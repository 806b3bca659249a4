from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from .data.binder import DataSource
from .template.evaluator import RenderLimits


# -----------------------------
@dataclass(frozen=True)
class RunOptions:
    # Шаблон: путь к файлу либо уже прочитанный текст (stdin)
    template_path: Optional[Path] = None
    template_text: Optional[str] = None
    # Источники данных в порядке применения (поздние перекрывают ранние ключи)
    sources: Tuple[DataSource, ...] = ()
    # Добавлять ли _ENV в корневую мапу
    include_env: bool = True
    limits: RenderLimits = field(default_factory=RenderLimits)

    @property
    def template_name(self) -> str:
        if self.template_path is not None:
            return str(self.template_path)
        return "<stdin>"


__all__ = ["RunOptions"]
