"""Output formatting with strict stdout/stderr separation.

* **stdout** -- the graph snapshot, tables and renderings. Nothing else, so
  ``oagraph generate spec.json > graph.json`` yields clean JSON.
* **stderr** -- status, warnings, errors and log records.
* ``AUTO`` format resolves to Rich on an interactive terminal and to plain
  text when piped. ``NO_COLOR``, ``TERM=dumb`` and ``--no-color`` disable
  colour.

An :class:`OutputManager` is created by :func:`oagraph.app.main_callback`
and installed with :func:`set_output`; the module-level helpers delegate to
it. :func:`configure_logging` routes the package loggers to stderr through
Rich when ``--verbose`` is given.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.syntax import Syntax
from rich.table import Table


class OutputFormat(str, Enum):
    """Supported output formats. ``AUTO`` picks ``RICH`` or ``PLAIN`` from the TTY."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


class OutputManager:
    """Route data to stdout (or a file) and diagnostics to stderr.

    Args:
        format: Desired output format.
        no_color: Disable colour and markup.
        quiet: Suppress informational messages on stderr.
        verbose: Show debug messages on stderr.
        output_file: Write data to this path instead of stdout.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        output_file: Optional[str] = None,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._output_file = output_file

        if format == OutputFormat.AUTO:
            self._format = OutputFormat.RICH if _is_tty() and not self._no_color else OutputFormat.PLAIN
        else:
            self._format = format

        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=(self._format == OutputFormat.RICH),
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    @property
    def is_quiet(self) -> bool:
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        return self._verbose

    @property
    def stderr_console(self) -> Console:
        return self._stderr

    # ------------------------------------------------------------------ #
    # Data (stdout)
    # ------------------------------------------------------------------ #

    def set_output_file(self, path: Optional[str]) -> None:
        """Redirect subsequent data output to *path* (``None`` restores stdout)."""
        self._output_file = path

    def print_data(self, text: str) -> None:
        """Write *text* to stdout, or to the output file when one is set."""
        if self._output_file:
            content = text if text.endswith("\n") else text + "\n"
            Path(self._output_file).write_text(content, encoding="utf-8")
        else:
            print(text, file=sys.stdout, flush=True)

    def print_json(self, data: Any) -> None:
        """Emit *data* as JSON.

        Rich mode highlights it on a terminal; every other mode (and file
        output) writes plain indented JSON.
        """
        text = json.dumps(data, indent=2, ensure_ascii=False, default=str)
        if self._format == OutputFormat.RICH and not self._output_file:
            self._stdout.print(Syntax(text, "json", theme="monokai", word_wrap=True))
        else:
            self.print_data(text)

    def print_text(self, text: str) -> None:
        """Emit a text block such as a structural rendering."""
        if self._format == OutputFormat.JSON:
            self.print_data(json.dumps({"text": text}, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.RICH and not self._output_file:
            self._stdout.print(text, markup=False, highlight=False)
        else:
            self.print_data(text)

    def print_table(self, headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
        """Print rows as a Rich table, a JSON array of objects, or TSV."""
        if self._format == OutputFormat.JSON:
            records = [dict(zip(headers, row)) for row in rows]
            self.print_data(json.dumps(records, indent=2, ensure_ascii=False))
        elif self._format == OutputFormat.PLAIN:
            lines = ["\t".join(headers)] + ["\t".join(row) for row in rows]
            self.print_data("\n".join(lines))
        else:
            table = Table(title=title, show_header=True, header_style="bold cyan")
            for header in headers:
                table.add_column(header)
            for row in rows:
                table.add_row(*row)
            self._stdout.print(table)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def _diag(self, plain: str, markup: str) -> None:
        if self._no_color:
            print(plain, file=sys.stderr, flush=True)
        else:
            self._stderr.print(markup)

    def info(self, message: str) -> None:
        if not self._quiet:
            self._diag(message, message)

    def success(self, message: str) -> None:
        if not self._quiet:
            self._diag(message, f"[green]{message}[/green]")

    def warning(self, message: str) -> None:
        """Warnings are shown even with ``--quiet``."""
        self._diag(f"Warning: {message}", f"[yellow]Warning:[/yellow] {message}")

    def error(self, message: str) -> None:
        self._diag(f"Error: {message}", f"[bold red]Error:[/bold red] {message}")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._diag(f"[debug] {message}", f"[dim][debug] {message}[/dim]")


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    return os.environ.get("NO_COLOR") is not None or os.environ.get("TERM") == "dumb"


# ------------------------------------------------------------------ #
# Logging
# ------------------------------------------------------------------ #

_LOGGER_NAME = "oagraph"


def configure_logging(output: OutputManager) -> None:
    """Attach a stderr handler to the ``oagraph`` logger.

    With ``--verbose`` every debug record is shown through a
    :class:`~rich.logging.RichHandler`; otherwise only warnings and above
    (``--quiet`` raises that to errors).
    """
    logger = logging.getLogger(_LOGGER_NAME)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    if output.is_verbose:
        level = logging.DEBUG
    elif output.is_quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    handler: logging.Handler
    if output.is_verbose:
        handler = RichHandler(console=output.stderr_console, show_path=True, markup=False)
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    handler.setLevel(level)
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


# ------------------------------------------------------------------ #
# Global instance
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Drop the installed manager. Used by the test suite between tests."""
    global _output
    _output = None


def print_json(data: Any) -> None:
    get_output().print_json(data)


def print_text(text: str) -> None:
    get_output().print_text(text)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def warning(message: str) -> None:
    get_output().warning(message)


def error(message: str) -> None:
    get_output().error(message)


def debug(message: str) -> None:
    get_output().debug(message)
