"""Read OpenAPI documents from a URL, a local file, or stdin.

The loader only turns bytes into a ``dict``; it does not resolve references
or interpret the document. JSON and YAML are both accepted. The format is
guessed from the file extension or the HTTP ``content-type`` and confirmed
by trying the parsers in turn.

* :func:`load_spec` -- fetch and parse a document from any source.
* :func:`validate_openapi_version` -- accept OpenAPI 3.1 documents only.

Older documents (Swagger 2, OpenAPI 3.0) have to be upgraded by an external
assembler first; the compiler relies on 3.1 semantics such as array-form
``type`` for nullability.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from oagraph.exceptions import SpecParseError

logger = logging.getLogger(__name__)

_JSON_SUFFIXES = (".json",)
_YAML_SUFFIXES = (".yaml", ".yml")


def load_spec(source: str) -> dict[str, Any]:
    """Load an OpenAPI document.

    Args:
        source: An ``http(s)://`` URL, a file path, or ``-`` for stdin.

    Returns:
        The parsed document.

    Raises:
        SpecParseError: If the source cannot be read or is not a JSON/YAML
            mapping.
    """
    if source == "-":
        content, hint, origin = _read_stdin(), "", "stdin"
    elif source.startswith(("http://", "https://")):
        content, hint = _fetch(source)
        origin = source
    else:
        content, hint = _read_file(source)
        origin = source
    logger.debug("Loaded %d characters from %s", len(content), origin)
    return _parse_content(content, hint=hint)


def _read_stdin() -> str:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc
    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return content


def _fetch(url: str) -> tuple[str, str]:
    """GET *url* and return its body plus a format hint from ``content-type``."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(f"HTTP {exc.response.status_code} fetching {url}") from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "").lower()
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    else:
        hint = ""
    return response.text, hint


def _read_file(path: str) -> tuple[str, str]:
    """Read *path* and return its text plus a format hint from the extension."""
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Spec file not found: {path}")
    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read spec file {path}: {exc}") from exc
    if not content.strip():
        raise SpecParseError(f"Spec file is empty: {path}")

    suffix = file_path.suffix.lower()
    if suffix in _JSON_SUFFIXES:
        return content, "json"
    if suffix in _YAML_SUFFIXES:
        return content, "yaml"
    return content, ""


def _require_mapping(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise SpecParseError(f"Spec must be a JSON/YAML object (got {kind})")
    return result


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON, then YAML.

    A ``json`` hint disables the YAML fallback; a ``yaml`` hint skips the
    JSON attempt.
    """
    errors: list[str] = []
    if hint != "yaml":
        try:
            return _require_mapping(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON: {exc}") from exc
            errors.append(f"JSON error: {exc}")

    try:
        return _require_mapping(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    raise SpecParseError("Failed to parse spec as JSON or YAML\n  " + "\n  ".join(errors))


def validate_openapi_version(spec: dict[str, Any]) -> str:
    """Return the document's ``openapi`` version if it is 3.1.x.

    Raises:
        SpecParseError: For Swagger 2 documents, a missing ``openapi`` field,
            or any version other than 3.1.x.
    """
    if "swagger" in spec:
        raise SpecParseError(
            f"Swagger {spec['swagger']} is not supported. "
            "Upgrade the document to OpenAPI 3.1 first."
        )

    version = spec.get("openapi")
    if version is None:
        raise SpecParseError("Missing 'openapi' field. Is this an OpenAPI 3.1 document?")

    version_str = str(version)
    if version_str.startswith("3.1."):
        return version_str
    if version_str.startswith("3.0."):
        raise SpecParseError(
            f"OpenAPI {version_str} is not supported. Upgrade the document to OpenAPI 3.1 first."
        )
    raise SpecParseError(f"Unsupported OpenAPI version: {version_str}. Only OpenAPI 3.1.x is supported.")
