"""OpenAI Responses API streaming events."""

from __future__ import annotations

from .response_event import (
    LIFECYCLE_TYPES,
    FunctionCall,
    ResponseEventType,
    ResponseStreamEvent,
    decode_response_event,
    stream_response_events,
)

__all__ = [
    "LIFECYCLE_TYPES",
    "FunctionCall",
    "ResponseEventType",
    "ResponseStreamEvent",
    "decode_response_event",
    "stream_response_events",
]
