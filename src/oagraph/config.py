"""Settings files, XDG paths, and precedence resolution.

The effective :class:`~oagraph.settings.GeneratorSettings` for a run are
layered from several sources (high to low precedence):

1. CLI overrides (``--role``, ``--used-only/--all-models``)
2. Environment variables (``OAGRAPH_ROLE``, ``OAGRAPH_ALL_MODELS``)
3. An explicit settings file (``--settings FILE``, JSON or YAML)
4. A project file in the working directory (``oagraph.json`` or ``oagraph.yaml``)
5. The global file ``$XDG_CONFIG_HOME/oagraph/config.json``
6. Defaults

Layers are merged key by key (``media_types`` one level deeper) before
validation, so a project file can override only ``media_types.request``
and keep the other values from the global file.

Directory layout follows the XDG Base Directory spec on Linux/BSD and uses
``~/.oagraph/`` elsewhere. Files are written atomically (temp file in the
same directory, then rename).
"""

from __future__ import annotations

import json
import logging
import os
import platform
import tempfile
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import ValidationError

from oagraph.exceptions import ConfigError
from oagraph.settings import GeneratorSettings

logger = logging.getLogger(__name__)

_APP_NAME = "oagraph"
_CONFIG_FILENAME = "config.json"
_PROJECT_FILENAMES = ("oagraph.json", "oagraph.yaml", "oagraph.yml")

ENV_ROLE = "OAGRAPH_ROLE"
ENV_ALL_MODELS = "OAGRAPH_ALL_MODELS"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    return Path.home().joinpath(*default_segments)


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/oagraph/`` (default ``~/.config/oagraph/``).
    Elsewhere: ``~/.oagraph/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory used for crash logs, creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/oagraph/`` (default ``~/.local/share/oagraph/``).
    Elsewhere: ``~/.oagraph/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}" / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write *data* to *path* via a temp file in the same directory and ``os.replace``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        mode="w",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
        encoding="utf-8",
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.replace(tmp.name, path)
    except BaseException:
        try:
            os.unlink(tmp.name)
        except OSError:
            pass
        raise


# --- Settings files ---


def read_settings_file(path: Path) -> dict[str, Any]:
    """Read a JSON or YAML settings file into a raw dict.

    YAML is used for ``.yaml``/``.yml`` files, JSON otherwise.

    Raises:
        ConfigError: If the file is missing, unreadable, or not a mapping.
    """
    if not path.is_file():
        raise ConfigError(f"Settings file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid settings file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {path} must contain a mapping")
    return data


def _global_settings_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_settings() -> dict[str, Any]:
    """Raw global settings, or an empty dict when there is no global file."""
    path = _global_settings_path()
    if not path.is_file():
        return {}
    return read_settings_file(path)


def save_global_settings(settings: GeneratorSettings) -> Path:
    """Persist *settings* as the global settings file and return its path."""
    path = _global_settings_path()
    data = settings.model_dump(mode="json", exclude_unset=True)
    _atomic_write(path, json.dumps(data, indent=2) + "\n")
    return path


def find_project_settings(cwd: Optional[Path] = None) -> Optional[Path]:
    """Return the first project settings file in *cwd*, if any."""
    base = cwd or Path.cwd()
    for name in _PROJECT_FILENAMES:
        candidate = base / name
        if candidate.is_file():
            return candidate
    return None


# --- Precedence resolution ---


def _merge(base: dict[str, Any], layer: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in layer.items():
        if key == "media_types" and isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = {**merged[key], **value}
        else:
            merged[key] = value
    return merged


def _env_overrides() -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    role = os.environ.get(ENV_ROLE)
    if role:
        overrides["role"] = role.strip().lower()
    all_models = os.environ.get(ENV_ALL_MODELS)
    if all_models:
        value = all_models.strip().lower()
        if value in _TRUE:
            overrides["all_models"] = True
        elif value in _FALSE:
            overrides["all_models"] = False
        else:
            raise ConfigError(f"{ENV_ALL_MODELS} must be a boolean, got {all_models!r}")
    return overrides


def resolve_settings(
    settings_file: Optional[Path] = None,
    cli_role: Optional[str] = None,
    cli_all_models: Optional[bool] = None,
) -> GeneratorSettings:
    """Resolve the effective generator settings.

    Args:
        settings_file: Explicit settings file (``--settings``).
        cli_role: ``--role`` override.
        cli_all_models: ``--all-models``/``--used-only`` override.

    Raises:
        ConfigError: If any layer is unreadable or the merged result is invalid.
    """
    layers: list[tuple[str, dict[str, Any]]] = [("global", load_global_settings())]

    project = find_project_settings()
    if project is not None:
        layers.append((str(project), read_settings_file(project)))
    if settings_file is not None:
        layers.append((str(settings_file), read_settings_file(settings_file)))
    layers.append(("environment", _env_overrides()))

    cli: dict[str, Any] = {}
    if cli_role is not None:
        cli["role"] = cli_role
    if cli_all_models is not None:
        cli["all_models"] = cli_all_models
    layers.append(("command line", cli))

    merged: dict[str, Any] = {}
    for source, layer in layers:
        if layer:
            logger.debug("Applying settings from %s: %s", source, sorted(layer))
        merged = _merge(merged, layer)

    try:
        return GeneratorSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid settings: {exc}") from exc
