"""Typer application and CLI entry point for oagraph.

This module wires together the top-level Typer application and registers
the built-in sub-commands (``generate``, ``inspect``, ``config``).

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. It installs signal handlers and invokes the Typer app.
:class:`~oagraph.exceptions.OagraphError` exits with the error's code;
any other exception is written to a crash log under the data directory.

See Also:
    :mod:`oagraph.config`: Settings resolution used by every command.
    :mod:`oagraph.output`: Output formatting initialised in :func:`main_callback`.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from typing import Any

import typer

from oagraph import __version__
from oagraph.exceptions import InvalidUsageError, OagraphError
from oagraph.exit_codes import EXIT_GENERIC_FAILURE
from oagraph.output import OutputFormat, OutputManager, configure_logging, error, set_output


app = typer.Typer(
    name="oagraph",
    help="Compile OpenAPI 3.1 documents into a language-neutral model graph.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

# ------------------------------------------------------------------ #
# Commands
# ------------------------------------------------------------------ #

from oagraph.commands.config import config_app  # noqa: E402
from oagraph.commands.generate import generate_command  # noqa: E402
from oagraph.commands.inspect import inspect_app  # noqa: E402

app.command("generate")(generate_command)
app.add_typer(inspect_app, name="inspect", help="Inspect the compiled graph.")
app.add_typer(config_app, name="config", help="Generator settings management.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"oagraph {__version__}")
        raise typer.Exit()


def _select_format(json_output: bool, plain_output: bool) -> OutputFormat:
    if json_output and plain_output:
        raise InvalidUsageError("--json and --plain are mutually exclusive")
    if json_output:
        return OutputFormat.JSON
    if plain_output:
        return OutputFormat.PLAIN
    return OutputFormat.AUTO


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Print the oagraph version."
    ),
    json_output: bool = typer.Option(False, "--json", help="Tables and renderings as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Tab-separated tables, no highlighting."),
    no_color: bool = typer.Option(False, "--no-color", help="Never emit ANSI colour."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only warnings and errors on stderr."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log compiler decisions to stderr."),
) -> None:
    """Install the global OutputManager and route the ``oagraph`` loggers through it."""
    try:
        fmt = _select_format(json_output, plain_output)
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    output = OutputManager(
        format=fmt,
        no_color=no_color,
        quiet=quiet,
        verbose=verbose,
    )
    set_output(output)
    configure_logging(output)


def _install_sigint_handler() -> None:
    def _on_sigint(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nInterrupted.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _on_sigint)


def _write_crash_log(exc: Exception) -> str:
    """Write the current traceback to ``<data dir>/logs`` and return the path."""
    from oagraph.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"crash-{datetime.now():%Y%m%d-%H%M%S}.log"
    log_path.write_text(f"oagraph {__version__}\n{type(exc).__name__}: {exc}\n\n{traceback.format_exc()}")
    return str(log_path)


def main() -> None:
    """Console-script entry point.

    Commands report their own :class:`~oagraph.exceptions.OagraphError`
    failures; anything reaching this function unhandled is either such an
    error raised outside a command or a bug, which gets a crash log.
    """
    _install_sigint_handler()
    try:
        app()
    except OagraphError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        sys.stderr.write("\nInterrupted.\n")
        sys.exit(130)
    except Exception as exc:
        error(f"Unexpected error. Debug log: {_write_crash_log(exc)}")
        sys.exit(EXIT_GENERIC_FAILURE)
