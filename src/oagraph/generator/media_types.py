"""Media-type preference matching.

A preference is either a literal media type, compared case-insensitively,
or a regular expression followed by whitespace and optional flags (only
``i`` is meaningful since the candidate is lower-cased first)::

    "application/json"               # literal
    "^application/.*\\+json$ i"      # pattern with flags
    "^text/.* "                      # pattern, no flags
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from functools import lru_cache
from typing import Optional

_FLAG_MAP = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}


@lru_cache(maxsize=128)
def _compile(preference: str) -> Optional[re.Pattern[str]]:
    parts = preference.lower().split()
    if len(parts) == 1 and parts[0] == preference.lower():
        return None
    flags = 0
    for flag in parts[1] if len(parts) > 1 else "":
        flags |= _FLAG_MAP.get(flag, 0)
    return re.compile(parts[0], flags)


def media_type_matches(preference: str, media_type: str) -> bool:
    """Return True if *media_type* satisfies *preference*."""
    pattern = _compile(preference)
    candidate = media_type.lower()
    if pattern is None:
        return preference.lower() == candidate
    return pattern.search(candidate) is not None


def _rank(preferences: Sequence[str], media_type: str) -> int:
    for idx, preference in enumerate(preferences):
        if media_type_matches(preference, media_type):
            return idx
    return -1


def preferred_media_types(preferences: Sequence[str], media_types: Iterable[str]) -> list[str]:
    """Filter and order *media_types* by *preferences*.

    Candidates matching no preference are dropped. The rest are sorted by
    the index of the first preference they match; ties keep input order.

    Example::

        >>> preferred_media_types(["application/json", "text/plain"],
        ...                       ["application/xml", "application/json"])
        ['application/json']
    """
    unique = list(dict.fromkeys(media_types))
    ranked = [(rank, mt) for mt in unique if (rank := _rank(preferences, mt)) >= 0]
    return [mt for _, mt in sorted(ranked, key=lambda pair: pair[0])]
