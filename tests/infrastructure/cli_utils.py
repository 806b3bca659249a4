"""
Utilities for working with CLI in tests.
"""

import json
import os
import subprocess
import sys
from pathlib import Path
from typing import Mapping, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def run_cli(
    root: Path,
    *args: str,
    stdin: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> subprocess.CompletedProcess:
    """
    Runs rtpl.cli with specified arguments in the given directory.

    Args:
        root: Working directory for command execution
        *args: Command line arguments for rtpl.cli
        stdin: Text passed to the process standard input
        env: Extra environment variables for the process

    Returns:
        CompletedProcess with execution results
    """
    proc_env = os.environ.copy()
    # Пакет должен импортироваться и без установки
    proc_env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(PROJECT_ROOT), proc_env.get("PYTHONPATH", "")) if p
    )
    for name in ("RTPL_DEBUG", "RTPL_MAX_DEPTH", "RTPL_MAX_ITERATIONS"):
        proc_env.pop(name, None)
    if env:
        proc_env.update(env)

    return subprocess.run(
        [sys.executable, "-m", "rtpl.cli", *args],
        cwd=root, env=proc_env, input=stdin,
        capture_output=True, text=True, encoding="utf-8",
    )


def jload(s: str):
    """Parses JSON output of the report command."""
    return json.loads(s)


__all__ = ["run_cli", "jload"]
