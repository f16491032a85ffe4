"""Reference-aware depth-first walker over OpenAPI 3.1 documents.

* :mod:`~oagraph.walker.visitor` -- :class:`DocumentVisitor`, the overridable
  traversal with the ``None``/``False``/``True`` return protocol.
* :mod:`~oagraph.walker.location` -- :class:`LocationTracker`, which reports
  the JSON pointer of the element being visited.
"""

from oagraph.walker.location import LocationTracker, ReferenceMarker, escape_segment, unescape_segment
from oagraph.walker.visitor import DocumentVisitor, SchemaInspection

__all__ = [
    "DocumentVisitor",
    "LocationTracker",
    "ReferenceMarker",
    "SchemaInspection",
    "escape_segment",
    "unescape_segment",
]
