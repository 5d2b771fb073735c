"""Server-sent event schema for the analysis stream.

Every payload on the ``/analyze-stream`` feed is a JSON object with a
``type`` discriminator. The backend also sends a ``progress`` number on most
events; fields a type does not use are ignored.
"""

from __future__ import annotations

import json
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter, ValidationError


class EventParseError(ValueError):
    """Raised when a stream payload is not a valid analysis event."""


class ProgressEvent(BaseModel):
    type: Literal["progress"]
    message: str = ""
    # json.loads accepts NaN and Infinity; they are schema violations here
    progress: Optional[float] = Field(None, allow_inf_nan=False)


class AgentStartEvent(BaseModel):
    type: Literal["agent_start"]
    agent: str


class AgentCompleteEvent(BaseModel):
    type: Literal["agent_complete"]
    agent: str
    result: Optional[dict[str, Any]] = None
    formatted: Optional[Any] = None
    url: Optional[str] = None


class AgentErrorEvent(BaseModel):
    type: Literal["agent_error"]
    agent: str
    message: str = ""


class UrlProcessingEvent(BaseModel):
    type: Literal["url_processing"]
    message: str


class SitemapParsedEvent(BaseModel):
    type: Literal["sitemap_parsed"]
    # URL count; the backend sends it as a number in the message field
    message: Union[int, str]


class CompleteEvent(BaseModel):
    type: Literal["complete"]
    message: Optional[str] = None


class ErrorEvent(BaseModel):
    type: Literal["error"]
    message: str = ""


StreamEvent = Annotated[
    Union[
        ProgressEvent,
        AgentStartEvent,
        AgentCompleteEvent,
        AgentErrorEvent,
        UrlProcessingEvent,
        SitemapParsedEvent,
        CompleteEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

_adapter: TypeAdapter = TypeAdapter(StreamEvent)

TERMINAL_EVENT_TYPES = frozenset({"complete", "error"})


def parse_event(payload: str | bytes | dict) -> StreamEvent:
    """Validate a raw SSE data payload (JSON text or decoded dict)."""
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except ValueError as e:
            raise EventParseError(f"Invalid JSON in stream event: {e}") from e
    if not isinstance(payload, dict):
        raise EventParseError(f"Stream event must be a JSON object, got {type(payload).__name__}")
    try:
        return _adapter.validate_python(payload)
    except ValidationError as e:
        raise EventParseError(f"Invalid stream event: {e.error_count()} validation error(s)") from e


def is_terminal(event: StreamEvent) -> bool:
    return event.type in TERMINAL_EVENT_TYPES
