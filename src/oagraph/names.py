"""Identifier case helpers."""

from __future__ import annotations

import re

_WORD_SPLIT_RE = re.compile(r"[^A-Za-z0-9]+")


def snake_case(text: str) -> str:
    """Convert arbitrary text to ``snake_case``.

    CamelCase boundaries and any run of non-alphanumeric characters become
    a single underscore.

    Example::

        >>> snake_case("get /pets/{petId}")
        'get_pets_pet_id'
        >>> snake_case("XMLParser")
        'xml_parser'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", text)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    words = [w for w in _WORD_SPLIT_RE.split(result) if w]
    return "_".join(words).lower()
