"""OpenAPI document loading and reference handling.

Typical usage::

    from oagraph.parser import load_spec, validate_openapi_version, dereference

    raw = load_spec("petstore.yaml")
    validate_openapi_version(raw)
    doc = dereference(raw)

Sub-modules:

* :mod:`~oagraph.parser.loader` -- I/O (URL, file, stdin), JSON/YAML
  detection and version validation.
* :mod:`~oagraph.parser.resolver` -- JSON Pointer lookup, the walker
  resolver, and identity-preserving dereferencing.
"""

from oagraph.parser.loader import load_spec, validate_openapi_version
from oagraph.parser.resolver import dereference, make_resolver, resolve_pointer

__all__ = ["load_spec", "validate_openapi_version", "dereference", "make_resolver", "resolve_pointer"]
