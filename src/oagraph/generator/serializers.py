"""Parameter serializer keys.

A serializer key is a short code naming the wire encoding of a parameter,
derived from its location, ``style`` and ``explode`` values. Code generators
use the key to pick an encoder:

==================  =============  ============
style               explode=false  explode=true
==================  =============  ============
``simple``          ``s``          ``se``
``label``           ``l``          ``le``
``matrix``          ``m``          ``me``
``form``            ``f``          ``fe``
``spaceDelimited``  ``sd``         ``sd``
``pipeDelimited``   ``pd``         ``pd``
``deepObject``      (none)         ``do``
==================  =============  ============
"""

from __future__ import annotations

from typing import Optional

# Default (style, explode) per parameter location.
LOCATION_DEFAULTS: dict[str, tuple[str, bool]] = {
    "query": ("form", True),
    "cookie": ("form", True),
    "header": ("simple", False),
    "path": ("simple", False),
}

_EXPLODABLE = {
    "simple": "s",
    "label": "l",
    "matrix": "m",
    "form": "f",
}

_DELIMITED = {
    "spaceDelimited": "sd",
    "pipeDelimited": "pd",
}


def effective_style(location: str, style: Optional[str], explode: Optional[bool]) -> tuple[Optional[str], Optional[bool]]:
    """Fill in the location defaults for *style* and *explode*.

    ``explode`` defaults to true only when the effective style is ``form``.
    """
    default_style, default_explode = LOCATION_DEFAULTS.get(location, (None, None))
    if style is None:
        style = default_style
    if explode is None:
        explode = style == "form" if style is not None else default_explode
    return style, explode


def serializer_key(location: str, style: Optional[str] = None, explode: Optional[bool] = None) -> Optional[str]:
    """Return the serializer key for a parameter, or ``None`` if there is none."""
    style, explode = effective_style(location, style, explode)
    if style in _EXPLODABLE:
        return _EXPLODABLE[style] + ("e" if explode else "")
    if style in _DELIMITED:
        return _DELIMITED[style]
    if style == "deepObject" and explode:
        return "do"
    return None
