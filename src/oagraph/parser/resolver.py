"""JSON Pointer lookup and identity-preserving ``$ref`` dereferencing.

:func:`dereference` replaces every internal ``{"$ref": "#/..."}`` with the
*same* target object, so two references to ``#/components/schemas/Pet`` end
up pointing at one ``dict``, and a schema that refers to itself becomes a
real object cycle instead of being cut off. The compiler depends on this:
it identifies schemas by object identity and terminates recursion on
revisits.

:func:`make_resolver` builds the lenient resolver the document walker takes;
it returns ``None`` for anything it cannot follow so the walker prunes that
branch instead of failing.

Example::

    doc = dereference(load_spec("tree.json"))
    tree = doc["components"]["schemas"]["Tree"]
    assert tree["properties"]["children"]["items"] is tree
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any, Optional
from urllib.parse import unquote

from oagraph.exceptions import SpecParseError
from oagraph.walker.location import unescape_segment

logger = logging.getLogger(__name__)


def resolve_pointer(document: Any, pointer: str) -> Any:
    """Return the value at *pointer* (``#`` or ``#/a/b``) inside *document*.

    Segments are percent-decoded and then ``~1``/``~0`` unescaped.

    Raises:
        SpecParseError: If the pointer is external or does not exist.
    """
    if pointer == "#":
        return document
    if not pointer.startswith("#/"):
        raise SpecParseError(
            f"External $ref not supported: {pointer}. Only internal references (#/...) are handled."
        )

    current = document
    for raw in pointer[2:].split("/"):
        segment = unescape_segment(unquote(raw))
        if isinstance(current, dict):
            if segment not in current:
                raise SpecParseError(f"Cannot resolve $ref '{pointer}': key '{segment}' not found")
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise SpecParseError(
                    f"Cannot resolve $ref '{pointer}': invalid array index '{segment}'"
                ) from exc
        else:
            raise SpecParseError(
                f"Cannot resolve $ref '{pointer}': cannot navigate into {type(current).__name__}"
            )
    return current


def make_resolver(document: dict[str, Any]) -> Callable[[dict[str, Any]], Optional[Any]]:
    """Return a walker resolver over *document*.

    The resolver maps a reference object to its target, or to ``None`` when
    the reference is external or dangling.
    """

    def resolver(ref: dict[str, Any]) -> Optional[Any]:
        pointer = ref.get("$ref")
        if not isinstance(pointer, str):
            return None
        try:
            return resolve_pointer(document, pointer)
        except SpecParseError as exc:
            logger.debug("Resolver pruned %s: %s", pointer, exc)
            return None

    return resolver


class _Dereferencer:
    def __init__(self, root: dict[str, Any]):
        self.root = root
        self.targets: dict[str, Any] = {}
        self.walked: set[int] = set()
        self.chasing: set[str] = set()

    def walk(self, node: Any) -> Any:
        if isinstance(node, dict):
            if "$ref" in node and isinstance(node["$ref"], str):
                return self.replace(node)
            if id(node) in self.walked:
                return node
            self.walked.add(id(node))
            for key, value in node.items():
                node[key] = self.walk(value)
        elif isinstance(node, list):
            if id(node) in self.walked:
                return node
            self.walked.add(id(node))
            for idx, value in enumerate(node):
                node[idx] = self.walk(value)
        return node

    def replace(self, ref_node: dict[str, Any]) -> Any:
        target = self.target(ref_node["$ref"])
        siblings = {k: v for k, v in ref_node.items() if k != "$ref"}
        if not siblings or not isinstance(target, dict):
            return target
        merged = dict(target)
        merged.update(siblings)
        return self.walk(merged)

    def target(self, pointer: str) -> Any:
        if pointer in self.targets:
            return self.targets[pointer]
        if pointer in self.chasing:
            raise SpecParseError(f"Circular $ref chain through '{pointer}'")

        self.chasing.add(pointer)
        try:
            found = resolve_pointer(self.root, pointer)
            if isinstance(found, dict) and isinstance(found.get("$ref"), str):
                found = self.replace(found)
        finally:
            self.chasing.discard(pointer)

        # Registered before walking so a self-reference resolves to this object.
        self.targets[pointer] = found
        return self.walk(found)


def dereference(document: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy of *document* with every internal ``$ref`` replaced.

    Shared targets stay shared and cycles become object cycles. Keys next to
    a ``$ref`` are merged into a shallow copy of its target.

    Raises:
        SpecParseError: On external references, dangling pointers, or a
            reference that only ever points at other references.
    """
    root = copy.deepcopy(document)
    worker = _Dereferencer(root)
    result = worker.walk(root)
    logger.debug("Dereferenced %d distinct targets", len(worker.targets))
    return result
