"""
Main processing pipeline.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Mapping, Optional, TextIO

from .api_schema import TemplateReport
from .data.binder import load_data
from .data.model import Value
from .errors import OutputError, TemplateLoadError
from .template.processor import CompiledTemplate, TemplateProcessor
from .types import RunOptions
from .version import tool_version

logger = logging.getLogger(__name__)


class Engine:
    """
    Engine coordinating class.

    Manages interaction between components:
    - template loading and TemplateProcessor (parse once)
    - data binder (all sources merged into one Value)
    - evaluator (render the compiled template against the data)
    """

    def __init__(self, options: RunOptions, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize engine with specified options.

        Args:
            options: Execution options
            environ: Environment used for env-prefix sources and _ENV (defaults to os.environ)
        """
        self.options = options
        self.environ = os.environ if environ is None else environ
        self.processor = TemplateProcessor(options.limits)

    def load_template_text(self) -> str:
        """
        Return template text from options or read it from the template file.

        Raises:
            TemplateLoadError: If the file is missing or unreadable
        """
        if self.options.template_text is not None:
            return self.options.template_text

        path = self.options.template_path
        if path is None:
            raise TemplateLoadError("No template provided")
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise TemplateLoadError(f"Template file not found: {path}")
        except (OSError, UnicodeDecodeError) as e:
            raise TemplateLoadError(f"Failed to read template file {path}: {e}") from e

    def compile(self) -> CompiledTemplate:
        """Parse the template; syntax errors abort before any data is bound."""
        return self.processor.compile(self.load_template_text(), self.options.template_name)

    def load_data(self) -> Value:
        return load_data(
            self.options.sources,
            environ=self.environ,
            include_env=self.options.include_env,
        )

    def render_text(self) -> str:
        """
        Render the template.

        Raises:
            TemplateSyntaxError, DataError, RenderError, TemplateLoadError
        """
        compiled = self.compile()
        data = self.load_data()
        text = compiled.render(data)
        logger.debug("Rendered %s: %d chars", compiled.name, len(text))
        return text

    def generate_report(self) -> TemplateReport:
        """Render the template and describe it (variables, node counts, output size)."""
        compiled = self.compile()
        data = self.load_data()
        text = compiled.render(data)

        return TemplateReport(
            tool_version=tool_version(),
            template_name=compiled.name,
            variables=compiled.variables(),
            node_counts=compiled.node_counts(),
            data_sources=[source.describe() for source in self.options.sources],
            rendered_chars=len(text),
            rendered_lines=len(text.splitlines()),
        )


def write_output(text: str, output_path: Optional[Path] = None, stream: Optional[TextIO] = None) -> None:
    """
    Write rendered text to a file, or to stdout when no path is given.

    Raises:
        OutputError: If the output cannot be written
    """
    if output_path is None:
        try:
            (stream or sys.stdout).write(text)
        except OSError as e:
            raise OutputError(f"Failed to write to stdout: {e}") from e
        return
    try:
        output_path.write_text(text, encoding="utf-8")
    except OSError as e:
        raise OutputError(f"Failed to write to output file {output_path}: {e}") from e


# ----------------------------- Entry Points ----------------------------- #

def run_render(options: RunOptions, environ: Optional[Mapping[str, str]] = None) -> str:
    """Entry point for rendering."""
    return Engine(options, environ).render_text()


def run_report(options: RunOptions, environ: Optional[Mapping[str, str]] = None) -> TemplateReport:
    """Entry point for report generation."""
    return Engine(options, environ).generate_report()


__all__ = [
    "Engine",
    "run_render",
    "run_report",
    "write_output",
]
