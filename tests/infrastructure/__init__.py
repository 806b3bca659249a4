"""
Unified test infrastructure for rtpl.

Modules:
- file_utils: Utilities for creating template and data files
- cli_utils: Running the CLI in a subprocess and parsing its JSON output
- data_utils: Building Value trees for engine-level tests
"""

from .file_utils import write, write_json, write_yaml
from .cli_utils import run_cli, jload
from .data_utils import data, render

__all__ = [
    # File utilities
    "write", "write_json", "write_yaml",

    # CLI utilities
    "run_cli", "jload",

    # Data utilities
    "data", "render",
]
