"""Schema-to-model compiler.

* :mod:`~oagraph.generator.compiler` -- :class:`LangNeutralGenerator`.
* :mod:`~oagraph.generator.context` -- context frames used during a pass.
* :mod:`~oagraph.generator.matching` -- structural schema/model matching.
* :mod:`~oagraph.generator.media_types` -- media-type preference ranking.
* :mod:`~oagraph.generator.response_codes` -- response-code ordering.
* :mod:`~oagraph.generator.serializers` -- parameter serializer keys.
"""

from oagraph.generator.compiler import LangNeutralGenerator
from oagraph.generator.matching import models_match, schemas_match
from oagraph.generator.media_types import preferred_media_types
from oagraph.generator.response_codes import preferred_response_codes
from oagraph.generator.serializers import serializer_key

__all__ = [
    "LangNeutralGenerator",
    "models_match",
    "preferred_media_types",
    "preferred_response_codes",
    "schemas_match",
    "serializer_key",
]
