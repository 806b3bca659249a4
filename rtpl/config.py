"""
Run settings resolved from CLI flags with environment fallbacks.

Priority: explicit flag > RTPL_* environment variable > built-in default.
"""

from __future__ import annotations

import os
from typing import Mapping, Optional

from .errors import RtplUserError
from .template.evaluator import DEFAULT_MAX_ITERATIONS, RenderLimits
from .template.parser import DEFAULT_MAX_DEPTH, MAX_DEPTH_LIMIT

MAX_DEPTH_ENV = "RTPL_MAX_DEPTH"
MAX_ITERATIONS_ENV = "RTPL_MAX_ITERATIONS"


def resolve_limits(
    max_depth: Optional[int] = None,
    max_iterations: Optional[int] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> RenderLimits:
    """
    Builds RenderLimits from flags and environment.

    Raises:
        RtplUserError: On non-integer or out-of-range values
    """
    env = os.environ if environ is None else environ

    depth = _pick(max_depth, env.get(MAX_DEPTH_ENV), MAX_DEPTH_ENV, DEFAULT_MAX_DEPTH)
    if depth < 1:
        raise RtplUserError(f"Maximum depth must be at least 1, got {depth}")
    if depth > MAX_DEPTH_LIMIT:
        raise RtplUserError(f"Maximum depth must not exceed {MAX_DEPTH_LIMIT}, got {depth}")

    iterations = _pick(max_iterations, env.get(MAX_ITERATIONS_ENV), MAX_ITERATIONS_ENV, DEFAULT_MAX_ITERATIONS)
    if iterations < 0:
        raise RtplUserError(f"Maximum iterations must not be negative, got {iterations}")

    return RenderLimits(max_depth=depth, max_iterations=iterations)


def _pick(flag: Optional[int], env_value: Optional[str], env_name: str, default: int) -> int:
    if flag is not None:
        return flag
    if env_value is None or not env_value.strip():
        return default
    try:
        return int(env_value.strip())
    except ValueError:
        raise RtplUserError(f"Invalid integer in {env_name}: {env_value!r}")


__all__ = ["resolve_limits", "MAX_DEPTH_ENV", "MAX_ITERATIONS_ENV"]
