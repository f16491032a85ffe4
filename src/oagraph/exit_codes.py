"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~oagraph.exceptions.OagraphError` subclass.
Build scripts that wrap ``oagraph generate`` can inspect the exit code to
tell a broken input document from a schema the compiler cannot model.

Example::

    $ oagraph generate petstore.yaml
    $ echo $?
    8   # EXIT_UNSUPPORTED_SCHEMA -- a body declared two incompatible media types
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_SPEC_PARSE_ERROR = 7
"""The OpenAPI document could not be loaded, parsed, or dereferenced."""

EXIT_UNSUPPORTED_SCHEMA = 8
"""A schema (or combination of schemas) could not be turned into a model."""

EXIT_PARAMETER_ENCODING = 9
"""A parameter declares a style/explode combination with no known serializer."""
