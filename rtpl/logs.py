from __future__ import annotations

import logging
import os

_LOG = logging.getLogger("rtpl")

DEBUG_ENV = "RTPL_DEBUG"


def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Настраивает логгер пакета один раз за процесс.

    Уровень DEBUG включается флагом --debug или переменной окружения RTPL_DEBUG,
    иначе выводятся только предупреждения. Повторный вызов меняет только уровень.
    """
    level = logging.DEBUG if (debug or os.environ.get(DEBUG_ENV)) else logging.WARNING
    _LOG.setLevel(level)
    if not _LOG.handlers:
        h = logging.StreamHandler()
        fmt = logging.Formatter("[%(levelname)s] %(message)s")
        h.setFormatter(fmt)
        _LOG.addHandler(h)
    return _LOG


__all__ = ["setup_logging", "DEBUG_ENV"]
