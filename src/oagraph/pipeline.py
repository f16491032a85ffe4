"""Load, validate and compile an OpenAPI document in one call."""

from __future__ import annotations

import logging
from typing import Optional

from oagraph.generator.compiler import LangNeutralGenerator
from oagraph.graph import LangNeutralGraph
from oagraph.parser.loader import load_spec, validate_openapi_version
from oagraph.settings import GeneratorSettings

logger = logging.getLogger(__name__)


def compile_spec(
    source: str,
    settings: Optional[GeneratorSettings] = None,
    ignore_unused_models: Optional[bool] = None,
) -> LangNeutralGraph:
    """Compile the document at *source* (URL, path or ``-``).

    ``ignore_unused_models=None`` defers to ``settings.all_models``.
    """
    raw = load_spec(source)
    version = validate_openapi_version(raw)
    logger.debug("Compiling OpenAPI %s document from %s", version, source)
    return LangNeutralGenerator(settings).generate(raw, ignore_unused_models)
