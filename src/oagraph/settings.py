"""Pydantic models for generator settings.

These are the only configurable inputs of a generation pass. They are
loaded from JSON/YAML by :mod:`oagraph.config` and passed explicitly to
:class:`~oagraph.generator.compiler.LangNeutralGenerator`.

Example settings file::

    {
        "role": "client",
        "all_models": false,
        "media_types": {
            "request": ["application/json", "^multipart/.* i"],
            "response": ["application/json"]
        }
    }
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_REQUEST_MEDIA_TYPES = [
    "application/x-www-form-urlencoded",
    "multipart/form-data",
    "application/octet-stream",
    "application/json",
    "text/plain",
    "application/xml",
]

DEFAULT_RESPONSE_MEDIA_TYPES = [
    "application/octet-stream",
    "application/json",
    "text/plain",
]

DEFAULT_BODY_NAMES = [
    "body",
    "reqBody",
    "_body",
    "_reqBody",
    "requestBody",
    "_requestBody",
    "_MaybeYouShouldReThinkYourParameterNames",
]


class MediaTypeSettings(BaseModel):
    """Preferred media types, most preferred first.

    Each entry is a literal media type or a ``"regex flags"`` pattern. A
    list set to ``None`` disables filtering for that direction.
    """

    model_config = ConfigDict(extra="forbid")

    request: Optional[list[str]] = Field(
        default_factory=lambda: list(DEFAULT_REQUEST_MEDIA_TYPES),
        description="Request body content types, most preferred first",
    )
    response: Optional[list[str]] = Field(
        default_factory=lambda: list(DEFAULT_RESPONSE_MEDIA_TYPES),
        description="Accepted response content types, most preferred first",
    )


class GeneratorSettings(BaseModel):
    """Settings for one generation pass.

    ``role`` selects which ``x-ignore-<role>`` extension applies. For the
    ``server`` role the media-type lists only filter when ``media_types``
    was given explicitly.
    """

    model_config = ConfigDict(extra="forbid")

    all_models: bool = Field(default=True, description="Compile component schemas even if unused")
    role: Literal["client", "server"] = Field(default="client", description="Generation role")
    body_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_BODY_NAMES),
        description="Candidate names for the body parameter, first free name wins",
    )
    media_types: MediaTypeSettings = Field(default_factory=MediaTypeSettings)

    def _filtering(self) -> bool:
        return self.role == "client" or "media_types" in self.model_fields_set

    def request_media_types(self) -> Optional[list[str]]:
        """Effective request preference list, or ``None`` to disable filtering."""
        return self.media_types.request if self._filtering() else None

    def response_media_types(self) -> Optional[list[str]]:
        """Effective response preference list, or ``None`` to disable filtering."""
        return self.media_types.response if self._filtering() else None
