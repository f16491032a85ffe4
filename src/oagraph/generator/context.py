"""Context frames for the schema compiler.

While walking an operation the compiler needs to know what a freshly built
top-level schema belongs to: a path-item parameter, an operation parameter,
a request body media type, or a response media type. Each of these scopes
pushes a frame on a :class:`FrameStack`; the innermost frame is the owner.
Because the scopes nest (path item > operation > request body / response)
the innermost frame also gives the precedence response > request body >
operation parameter > path-item parameter.

Request-body and response frames are also recorded on their enclosing
:class:`OperationParams` so the operation can be assembled after its
subtree has been walked.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Optional, TypeVar, Union

from oagraph.graph import Model


@dataclass
class ParamEntry:
    """A parameter met while walking, with the schema/model found under it."""

    parameter: dict[str, Any]
    location: str
    ignore: bool = False
    schema: Optional[dict[str, Any]] = None
    model: Optional[Model] = None


@dataclass
class MediaSchemaModel:
    media_type: str
    schema: dict[str, Any]
    model: Model


@dataclass
class PathItemParams:
    path: str
    location: str
    params: list[ParamEntry] = field(default_factory=list)


@dataclass
class RequestBodyFrame:
    location: str
    request_body: dict[str, Any]
    schema_models: list[MediaSchemaModel] = field(default_factory=list)


@dataclass
class ResponseFrame:
    code: str
    location: str
    response: dict[str, Any]
    schema_models: list[MediaSchemaModel] = field(default_factory=list)


@dataclass
class OperationParams:
    location: str
    operation: dict[str, Any]
    params: list[ParamEntry] = field(default_factory=list)
    request: Optional[RequestBodyFrame] = None
    responses: list[ResponseFrame] = field(default_factory=list)


Frame = Union[PathItemParams, OperationParams, RequestBodyFrame, ResponseFrame]
F = TypeVar("F", PathItemParams, OperationParams, RequestBodyFrame, ResponseFrame)


class FrameStack:
    """Stack of context frames; :meth:`push` pops on scope exit."""

    def __init__(self) -> None:
        self._frames: list[Frame] = []

    @contextmanager
    def push(self, frame: F) -> Iterator[F]:
        self._frames.append(frame)
        try:
            yield frame
        finally:
            self._frames.pop()

    def top(self) -> Optional[Frame]:
        return self._frames[-1] if self._frames else None

    def find(self, frame_type: type[F]) -> Optional[F]:
        """Return the innermost frame of *frame_type*, if any."""
        for frame in reversed(self._frames):
            if isinstance(frame, frame_type):
                return frame
        return None

    def clear(self) -> None:
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)
