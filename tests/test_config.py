import logging

import pytest

from rtpl.config import MAX_DEPTH_ENV, MAX_ITERATIONS_ENV, resolve_limits
from rtpl.errors import RtplUserError
from rtpl.logs import DEBUG_ENV, setup_logging
from rtpl.template import RenderLimits


def test_defaults():
    assert resolve_limits(environ={}) == RenderLimits(max_depth=64, max_iterations=100_000)


def test_environment_fallback():
    limits = resolve_limits(environ={MAX_DEPTH_ENV: "8", MAX_ITERATIONS_ENV: " 10 "})

    assert limits == RenderLimits(max_depth=8, max_iterations=10)


def test_flag_beats_environment():
    limits = resolve_limits(max_depth=3, max_iterations=0, environ={MAX_DEPTH_ENV: "8", MAX_ITERATIONS_ENV: "10"})

    assert limits == RenderLimits(max_depth=3, max_iterations=0)


def test_depth_ceiling_accepted():
    assert resolve_limits(max_depth=128, environ={}).max_depth == 128


def test_blank_environment_value_ignored():
    assert resolve_limits(environ={MAX_DEPTH_ENV: "  "}).max_depth == 64


@pytest.mark.parametrize("kwargs, environ, message", [
    ({}, {MAX_DEPTH_ENV: "deep"}, "Invalid integer in RTPL_MAX_DEPTH"),
    ({"max_depth": 0}, {}, "Maximum depth must be at least 1"),
    ({"max_depth": 1000}, {}, "Maximum depth must not exceed 128"),
    ({}, {MAX_DEPTH_ENV: "129"}, "Maximum depth must not exceed 128"),
    ({"max_iterations": -1}, {}, "Maximum iterations must not be negative"),
])
def test_invalid_values(kwargs, environ, message):
    with pytest.raises(RtplUserError, match=message) as exc:
        resolve_limits(environ=environ, **kwargs)

    assert exc.value.exit_code == 1


def test_setup_logging_levels(monkeypatch):
    monkeypatch.delenv(DEBUG_ENV, raising=False)
    log = setup_logging()
    assert log.level == logging.WARNING

    monkeypatch.setenv(DEBUG_ENV, "1")
    assert setup_logging().level == logging.DEBUG

    monkeypatch.delenv(DEBUG_ENV)
    assert setup_logging(debug=True).level == logging.DEBUG

    # Повторная настройка не дублирует обработчики
    assert len(log.handlers) == 1
    # вернуть уровень по умолчанию для остальных тестов
    setup_logging()
