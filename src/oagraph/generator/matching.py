"""Structural equivalence of schemas and models.

Two schema objects *match* when they describe the same shape, even if they
are distinct objects in the document. Keys starting with ``$`` (``$id``,
``$comment``, ``$schema``...) carry no shape and are ignored at every depth.
Comparison is cycle safe: a pair of nodes already under comparison is
assumed equal.
"""

from __future__ import annotations

from typing import Any, Optional

from oagraph.graph import Model


def _shape_keys(node: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in node.items() if not (isinstance(k, str) and k.startswith("$"))}


def _deep_equal(a: Any, b: Any, active: set[tuple[int, int]]) -> bool:
    if a is b:
        return True
    if isinstance(a, dict) and isinstance(b, dict):
        pair = (id(a), id(b))
        if pair in active:
            return True
        active.add(pair)
        try:
            sa, sb = _shape_keys(a), _shape_keys(b)
            if sa.keys() != sb.keys():
                return False
            return all(_deep_equal(sa[k], sb[k], active) for k in sa)
        finally:
            active.discard(pair)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(_deep_equal(x, y, active) for x, y in zip(a, b))
    # bool is an int subclass; keep true != 1.
    if isinstance(a, bool) != isinstance(b, bool):
        return False
    return a == b


def schemas_match(a: Optional[dict[str, Any]], b: Optional[dict[str, Any]]) -> bool:
    """Return True if schemas *a* and *b* are structurally equivalent.

    Array-form ``type`` values compare as sets. Otherwise ``type`` and
    ``format`` must be equal before the remaining keys are compared.
    """
    if a is b:
        return True
    if a is None or b is None:
        return False

    ta, tb = a.get("type"), b.get("type")
    if isinstance(ta, list) and isinstance(tb, list):
        if set(ta) != set(tb):
            return False
    elif ta != tb or a.get("format") != b.get("format"):
        return False

    rest_a = {k: v for k, v in a.items() if k != "type"}
    rest_b = {k: v for k, v in b.items() if k != "type"}
    return _deep_equal(rest_a, rest_b, set())


def models_match(a: Model, b: Model) -> bool:
    """Return True if models *a* and *b* are physically or logically the same."""
    if a is b:
        return True
    if a.kind != b.kind or a.name != b.name:
        return False
    return schemas_match(a.schema, b.schema)
