"""The ``oagraph generate`` command -- print the compiled graph as JSON."""

from __future__ import annotations

import enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer

from oagraph.exceptions import OagraphError
from oagraph.output import error, get_output, success

if TYPE_CHECKING:
    from oagraph.graph import LangNeutralGraph


class Role(str, enum.Enum):
    CLIENT = "client"
    SERVER = "server"


SETTINGS_OPTION = typer.Option(
    None, "--settings", "-s", help="Settings file (JSON or YAML).", dir_okay=False
)
ALL_MODELS_OPTION = typer.Option(
    None,
    "--all-models/--used-only",
    help="Compile every component schema, or only those reachable from operations.",
)
ROLE_OPTION = typer.Option(None, "--role", help="Generation role used for x-ignore-<role>.")


def run_compile(
    spec: str,
    settings_file: Optional[Path],
    all_models: Optional[bool],
    role: Optional[Role],
) -> LangNeutralGraph:
    """Resolve settings and compile *spec*, exiting with the error's code on failure."""
    from oagraph.config import resolve_settings
    from oagraph.pipeline import compile_spec

    try:
        settings = resolve_settings(
            settings_file=settings_file,
            cli_role=role.value if role else None,
            cli_all_models=all_models,
        )
        return compile_spec(spec, settings)
    except OagraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def generate_command(
    spec: str = typer.Argument(help="OpenAPI 3.1 document: path, URL, or '-' for stdin."),
    settings_file: Optional[Path] = SETTINGS_OPTION,
    all_models: Optional[bool] = ALL_MODELS_OPTION,
    role: Optional[Role] = ROLE_OPTION,
    output_file: Optional[str] = typer.Option(None, "-o", "--output", help="Write the graph to this file."),
) -> None:
    """Compile an OpenAPI document and print the model graph as JSON.

    Example::

        oagraph generate petstore.json
        oagraph generate petstore.yaml --used-only -o graph.json
    """
    from oagraph.graph import graph_to_dict

    graph = run_compile(spec, settings_file, all_models, role)
    try:
        data = graph_to_dict(graph)
    except OagraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    output = get_output()
    if output_file:
        output.set_output_file(output_file)
    output.print_json(data)
    if output_file:
        success(f"Wrote {len(graph.models)} models and {len(graph.apis)} apis to {output_file}")
