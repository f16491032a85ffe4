"""JSON Pointer location tracking for the document walker.

The walker keeps a stack of path segments while it descends an OpenAPI
document. Crossing a ``$ref`` pushes a frozen :class:`ReferenceMarker` so the
location of anything inside the referenced subtree is reported relative to
the reference target rather than to the site that led there::

    tracker = LocationTracker()
    with tracker.segment("paths"), tracker.segment("/pets"):
        tracker.active_location        # '#/paths/~1pets'
        with tracker.reference(ReferenceMarker("#/components/schemas/Pet")):
            with tracker.segment("properties"), tracker.segment("tag"):
                tracker.active_location
                # '#/components/schemas/Pet/properties/tag'

The location is computed on demand from the stack; nothing is cached between
pushes and pops.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class ReferenceMarker:
    """Immutable snapshot of a reference object placed on the location stack."""

    ref: str


StackEntry = Union[str, ReferenceMarker]


def escape_segment(segment: str) -> str:
    """Escape a single path segment per RFC 6901 (``~`` -> ``~0``, ``/`` -> ``~1``)."""
    return segment.replace("~", "~0").replace("/", "~1")


def unescape_segment(segment: str) -> str:
    """Reverse :func:`escape_segment`."""
    return segment.replace("~1", "/").replace("~0", "~")


class LocationTracker:
    """Stack of path segments and reference markers.

    After :meth:`reset` the stack always holds at least the root ``"#"``
    entry. :meth:`segment` and :meth:`reference` are context managers so
    every push has exactly one pop, including when a hook raises.
    """

    ROOT = "#"

    def __init__(self) -> None:
        self._stack: list[StackEntry] = [self.ROOT]

    def reset(self) -> None:
        self._stack = [self.ROOT]

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def entries(self) -> tuple[StackEntry, ...]:
        return tuple(self._stack)

    def last_segment(self, offset: int = 1) -> str:
        """Return the raw (unescaped) segment *offset* entries from the top.

        Raises:
            LookupError: If that entry is a reference marker or does not exist.
        """
        entry = self._stack[-offset]
        if not isinstance(entry, str):
            raise LookupError(f"Stack entry -{offset} is a reference, not a segment")
        return entry

    @contextmanager
    def segment(self, name: str | int) -> Iterator[None]:
        self._stack.append(str(name))
        try:
            yield
        finally:
            self._stack.pop()

    @contextmanager
    def reference(self, marker: ReferenceMarker) -> Iterator[None]:
        self._stack.append(marker)
        try:
            yield
        finally:
            self._stack.pop()

    @property
    def active_location(self) -> str:
        """JSON pointer of the node currently being visited.

        When a reference marker is on the stack, the result is that
        reference's token followed by the pointer of the segments pushed
        after it. Otherwise it is the plain pointer from the root.
        """
        idx = len(self._stack) - 1
        while idx >= 0 and isinstance(self._stack[idx], str):
            idx -= 1

        tail = [escape_segment(s) for s in self._stack[idx + 1:]]  # type: ignore[arg-type]
        if idx < 0:
            # No reference crossed; the root '#' is the first segment.
            return "/".join(tail)

        marker = self._stack[idx]
        assert isinstance(marker, ReferenceMarker)
        if not tail:
            return marker.ref
        return marker.ref + "/" + "/".join(tail)
