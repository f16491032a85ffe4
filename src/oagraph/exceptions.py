"""Exception hierarchy for oagraph.

All exceptions inherit from :class:`OagraphError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`oagraph.exit_codes`.
The top-level error handler in :func:`oagraph.app.main` catches
``OagraphError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Unresolved references met while walking a document are *not* errors; the
walker prunes that branch. Everything below propagates to the caller of the
generation pass, and a failed pass yields no graph.

Subclass hierarchy::

    OagraphError (exit 1)
    +-- InvalidUsageError        (exit 2)
    +-- SpecParseError           (exit 7)
    +-- UnsupportedSchemaError   (exit 8)
    +-- ParameterEncodingError   (exit 9)
    +-- ModelGraphError          (exit 1)
    +-- ConfigError              (exit 1)
"""

from oagraph.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PARAMETER_ENCODING,
    EXIT_SPEC_PARSE_ERROR,
    EXIT_UNSUPPORTED_SCHEMA,
)


class OagraphError(Exception):
    """Base exception for all oagraph errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`oagraph.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(OagraphError):
    """Raised for invalid CLI arguments or contradictory options."""

    exit_code = EXIT_INVALID_USAGE


class SpecParseError(OagraphError):
    """Raised when the OpenAPI document cannot be loaded, parsed, or dereferenced."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class UnsupportedSchemaError(OagraphError):
    """Raised when a schema shape cannot be modelled without guessing.

    The most common trigger is a request body or response left with no
    media-type schema, or with more than one structurally different one,
    after preference filtering.

    Args:
        message: Human-readable error description.
        location: JSON pointer of the offending element, appended to the
            message when given.
    """

    exit_code = EXIT_UNSUPPORTED_SCHEMA

    def __init__(self, message: str, location: str | None = None):
        if location:
            message = f"{message} (at {location})"
        super().__init__(message)
        self.location = location


class ParameterEncodingError(OagraphError):
    """Raised when a named parameter has no derivable serializer key.

    Args:
        name: The parameter name.
        location: The parameter's ``in`` value (``query``, ``path``, ...).
        style: The declared (or defaulted) style.
        explode: The declared (or defaulted) explode flag.
    """

    exit_code = EXIT_PARAMETER_ENCODING

    def __init__(self, name: str, location: str, style: str | None, explode: bool | None):
        super().__init__(
            f"Parameter '{name}' in {location} has no serializer for "
            f"style={style!r} explode={explode!r}"
        )
        self.name = name
        self.location = location


class ModelGraphError(OagraphError):
    """Raised when an invariant of the model graph would be violated."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(OagraphError):
    """Raised for configuration problems (unreadable settings files, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
