"""Preferred ordering of an operation's response status codes.

Codes are sorted so that success codes come first, with ``default`` placed
after the last ``2xx`` code but before any ``3xx``. The codes the HTTP
semantics of each method favour are then moved to the front, in the listed
priority.
"""

from __future__ import annotations

from collections.abc import Iterable

# Method -> codes that lead the ordering, highest priority first.
PREFERRED_CODES: dict[str, tuple[str, ...]] = {
    "HEAD": ("204", "200"),
    "GET": ("204", "200"),
    "POST": ("200", "201"),
    "PUT": ("204", "200", "201"),
    "DELETE": ("200", "204", "202"),
}

_DEFAULT_SORT_KEY = "2ZZ"


def _sort_key(code: str) -> str:
    key = code.upper()
    if key == "DEFAULT":
        key = _DEFAULT_SORT_KEY
    return key.ljust(3, "X")


def preferred_response_codes(method: str, codes: Iterable[str]) -> list[str]:
    """Order *codes* for *method*.

    Duplicates (compared case-insensitively) are dropped; the first spelling
    seen is the one returned.

    Example::

        >>> preferred_response_codes("post", ["404", "201", "200"])
        ['200', '201', '404']
        >>> preferred_response_codes("GET", ["200", "404", "204"])
        ['204', '200', '404']
    """
    spelling: dict[str, str] = {}
    for code in codes:
        spelling.setdefault(_sort_key(code), code)

    ordered = sorted(spelling)
    front = [_sort_key(c) for c in PREFERRED_CODES.get(method.upper(), ())]
    leading = [k for k in front if k in spelling]
    rest = [k for k in ordered if k not in leading]
    return [spelling[k] for k in leading + rest]
