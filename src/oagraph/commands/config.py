"""Config commands -- view and persist generator settings.

``oagraph config show`` prints the effective settings after applying every
precedence layer. ``oagraph config save`` writes the given overrides to the
global settings file so later runs pick them up.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from oagraph.commands.generate import ALL_MODELS_OPTION, ROLE_OPTION, SETTINGS_OPTION, Role
from oagraph.exceptions import OagraphError
from oagraph.output import error, get_output, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    settings_file: Optional[Path] = SETTINGS_OPTION,
    all_models: Optional[bool] = ALL_MODELS_OPTION,
    role: Optional[Role] = ROLE_OPTION,
) -> None:
    """Show the effective generator settings.

    Example::

        oagraph config show
        OAGRAPH_ROLE=server oagraph config show --json
    """
    from oagraph.config import get_config_dir, resolve_settings

    try:
        settings = resolve_settings(settings_file, role.value if role else None, all_models)
    except OagraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    get_output().print_json(settings.model_dump(mode="json"))


@config_app.command("save")
def config_save(
    all_models: Optional[bool] = ALL_MODELS_OPTION,
    role: Optional[Role] = ROLE_OPTION,
) -> None:
    """Merge the given options into the global settings file.

    Example::

        oagraph config save --role server --used-only
    """
    from oagraph.config import load_global_settings, save_global_settings
    from oagraph.settings import GeneratorSettings

    try:
        data = load_global_settings()
        if role is not None:
            data["role"] = role.value
        if all_models is not None:
            data["all_models"] = all_models
        path = save_global_settings(GeneratorSettings.model_validate(data))
    except OagraphError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except ValueError as exc:
        error(f"Invalid settings: {exc}")
        raise typer.Exit(code=2) from None
    success(f"Saved settings to {path}")
