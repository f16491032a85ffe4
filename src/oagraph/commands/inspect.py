"""Inspect commands -- tabular and textual views of a compiled graph.

``oagraph inspect models`` and ``oagraph inspect apis`` print tables;
``oagraph inspect render`` prints the structural text rendering of every
named model and api.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from oagraph.commands.generate import ALL_MODELS_OPTION, ROLE_OPTION, SETTINGS_OPTION, Role, run_compile
from oagraph.graph import render_api, render_model
from oagraph.output import get_output, info

inspect_app = typer.Typer(no_args_is_help=True)

SPEC_ARGUMENT = typer.Argument(help="OpenAPI 3.1 document: path, URL, or '-' for stdin.")


@inspect_app.command("models")
def inspect_models(
    spec: str = SPEC_ARGUMENT,
    settings_file: Optional[Path] = SETTINGS_OPTION,
    all_models: Optional[bool] = ALL_MODELS_OPTION,
    role: Optional[Role] = ROLE_OPTION,
) -> None:
    """List named models with their kind and source location.

    Example::

        oagraph inspect models petstore.json
    """
    graph = run_compile(spec, settings_file, all_models, role)
    if not graph.models:
        info("No named models.")
        return
    rows = [[m.name or "", m.kind.value, m.location or "-"] for m in graph.models]
    get_output().print_table(["Model", "Kind", "Location"], rows, title=f"Models ({len(rows)})")


@inspect_app.command("apis")
def inspect_apis(
    spec: str = SPEC_ARGUMENT,
    settings_file: Optional[Path] = SETTINGS_OPTION,
    role: Optional[Role] = ROLE_OPTION,
) -> None:
    """List every attached method grouped by api.

    Example::

        oagraph inspect apis petstore.json --role server
    """
    graph = run_compile(spec, settings_file, None, role)
    rows: list[list[str]] = []
    for api in graph.apis:
        for method in api.methods:
            params = ", ".join(p.name + ("" if p.required else "?") for p in method.parameters)
            rows.append([api.name, method.http_method, method.path_pattern, params, ", ".join(method.responses)])
    if not rows:
        info("No methods attached to any api.")
        return
    get_output().print_table(
        ["Api", "Method", "Path", "Parameters", "Responses"], rows, title=f"Methods ({len(rows)})"
    )


@inspect_app.command("render")
def inspect_render(
    spec: str = SPEC_ARGUMENT,
    settings_file: Optional[Path] = SETTINGS_OPTION,
    all_models: Optional[bool] = ALL_MODELS_OPTION,
    role: Optional[Role] = ROLE_OPTION,
) -> None:
    """Print the structural rendering of every named model and api.

    Example::

        oagraph inspect render tree.json
    """
    graph = run_compile(spec, settings_file, all_models, role)
    blocks = [render_model(m) for m in graph.models]
    blocks.extend(render_api(a).rstrip() for a in graph.apis)
    get_output().print_text("\n\n".join(blocks))
