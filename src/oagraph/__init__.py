"""oagraph -- compile OpenAPI 3.1 documents into a language-neutral model graph.

The package walks an OpenAPI document, turns every reachable schema into a
typed :class:`~oagraph.graph.Model` node and every operation into a
:class:`~oagraph.graph.Method` grouped under an :class:`~oagraph.graph.Api`.
Code generators consume the resulting :class:`~oagraph.graph.LangNeutralGraph`
instead of raw JSON.

Typical workflow::

    oagraph generate openapi.yaml > graph.json
    oagraph inspect render openapi.yaml

Modules:
    app: Typer application and CLI entry point.
    walker: Document visitor and location tracking.
    generator: Schema-to-model compiler and method assembly helpers.
    graph: Model, Method and Api node types plus rendering.
    parser: Document loading and ``$ref`` dereferencing.
    settings: Pydantic generator settings.
    config: XDG-aware settings resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
