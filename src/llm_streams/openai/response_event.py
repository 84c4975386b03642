"""
Streaming events of the OpenAI Responses API.

https://platform.openai.com/docs/api-reference/responses-streaming

Each ``data:`` line of the stream carries one JSON object tagged by
``type``. All event types share one flat, immutable record; which fields
are meaningful depends only on ``type``, and the accessors on
:class:`ResponseStreamEvent` read that dependency so callers never branch
on raw type strings.

Decoding is two-tiered. A strict validation of the whole record is tried
first; when a field has an unexpected shape, a permissive pass reads
``type`` and picks out only the fields that type is known to carry. Lines
that fail both are logged and dropped, never raised.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..json_value import JsonObject, get_path, parse_json
from ..streaming.models import strip_data_prefix
from ..streaming.parser import StreamingParser

logger = structlog.get_logger(__name__)


class ResponseEventType(str, Enum):
    """Known event types. The vocabulary grows; ``type`` stays a plain ``str``."""
    CREATED = "response.created"
    IN_PROGRESS = "response.in_progress"
    QUEUED = "response.queued"
    COMPLETED = "response.completed"
    FAILED = "response.failed"
    INCOMPLETE = "response.incomplete"
    OUTPUT_ITEM_ADDED = "response.output_item.added"
    OUTPUT_ITEM_DONE = "response.output_item.done"
    CONTENT_PART_ADDED = "response.content_part.added"
    CONTENT_PART_DONE = "response.content_part.done"
    OUTPUT_TEXT_DELTA = "response.output_text.delta"
    OUTPUT_TEXT_DONE = "response.output_text.done"
    OUTPUT_TEXT_ANNOTATION_ADDED = "response.output_text.annotation.added"
    REFUSAL_DELTA = "response.refusal.delta"
    REFUSAL_DONE = "response.refusal.done"
    FUNCTION_CALL_ARGUMENTS_DELTA = "response.function_call_arguments.delta"
    FUNCTION_CALL_ARGUMENTS_DONE = "response.function_call_arguments.done"
    ERROR = "error"


LIFECYCLE_TYPES = frozenset({
    ResponseEventType.CREATED.value,
    ResponseEventType.IN_PROGRESS.value,
    ResponseEventType.QUEUED.value,
    ResponseEventType.COMPLETED.value,
    ResponseEventType.FAILED.value,
    ResponseEventType.INCOMPLETE.value,
})

# Python type expected for each wire key read by the permissive decoder
_WIRE_KINDS: dict[str, type] = {
    "sequence_number": int,
    "delta": str,
    "item_id": str,
    "output_index": int,
    "content_index": int,
    "response": dict,
    "text": str,
    "refusal": str,
    "arguments": str,
    "name": str,
    "item": dict,
    "part": dict,
    "annotation": dict,
    "annotation_index": int,
    "code": str,
    "message": str,
    "param": str,
}

_TEXT_LOCATION = ("item_id", "output_index", "content_index")

# Wire keys meaningful per event type, beyond ``type`` and ``sequence_number``
_PERMISSIVE_FIELDS: dict[str, tuple[str, ...]] = {
    **{event_type: ("response",) for event_type in LIFECYCLE_TYPES},
    ResponseEventType.OUTPUT_ITEM_ADDED.value: ("item", "output_index"),
    ResponseEventType.OUTPUT_ITEM_DONE.value: ("item", "output_index"),
    ResponseEventType.CONTENT_PART_ADDED.value: ("part", *_TEXT_LOCATION),
    ResponseEventType.CONTENT_PART_DONE.value: ("part", *_TEXT_LOCATION),
    ResponseEventType.OUTPUT_TEXT_DONE.value: ("text", *_TEXT_LOCATION),
    ResponseEventType.OUTPUT_TEXT_ANNOTATION_ADDED.value: (
        "annotation", "annotation_index", *_TEXT_LOCATION
    ),
    ResponseEventType.REFUSAL_DONE.value: ("refusal", *_TEXT_LOCATION),
    ResponseEventType.FUNCTION_CALL_ARGUMENTS_DONE.value: (
        "arguments", "name", "item_id", "output_index"
    ),
    ResponseEventType.ERROR.value: ("code", "message", "param"),
}

_DELTA_FIELDS = ("delta", *_TEXT_LOCATION)


@dataclass(frozen=True)
class FunctionCall:
    """A function tool call surfaced by the stream."""
    name: str | None
    arguments: str | None
    call_id: str | None = None


class ResponseStreamEvent(BaseModel):
    """One decoded event of a Responses API stream."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    type: str
    sequence_number: int | None = None

    # Delta events
    delta: str | None = None
    item_id: str | None = None
    output_index: int | None = None
    content_index: int | None = None

    # Response lifecycle events
    response: JsonObject | None = None

    # Terminal ("done") payloads
    text: str | None = None
    refusal: str | None = None
    arguments: str | None = None
    name: str | None = None

    # Item / part / annotation lifecycle events
    item: JsonObject | None = None
    part: JsonObject | None = None
    annotation: JsonObject | None = None
    annotation_index: int | None = None

    # ``error`` events
    error_code: str | None = Field(default=None, alias="code")
    error_message: str | None = Field(default=None, alias="message")
    error_param: str | None = Field(default=None, alias="param")

    @classmethod
    def from_line(cls, line: str) -> ResponseStreamEvent | None:
        """Decode one stream line; see :func:`decode_response_event`."""
        return decode_response_event(line)

    # -- identity -------------------------------------------------------

    @property
    def response_id(self) -> str | None:
        """The ``id`` of the nested response, for lifecycle events."""
        if self.type not in LIFECYCLE_TYPES:
            return None
        response_id = get_path(self.response, "id")
        return response_id if isinstance(response_id, str) else None

    # -- deltas ---------------------------------------------------------

    @property
    def text_delta(self) -> str | None:
        if self.type == ResponseEventType.OUTPUT_TEXT_DELTA:
            return self.delta
        return None

    @property
    def refusal_delta(self) -> str | None:
        if self.type == ResponseEventType.REFUSAL_DELTA:
            return self.delta
        return None

    @property
    def function_call_arguments_delta(self) -> str | None:
        if self.type == ResponseEventType.FUNCTION_CALL_ARGUMENTS_DELTA:
            return self.delta
        return None

    # -- final payloads -------------------------------------------------

    @property
    def final_text(self) -> str | None:
        if self.type == ResponseEventType.OUTPUT_TEXT_DONE:
            return self.text
        return None

    @property
    def final_refusal(self) -> str | None:
        if self.type == ResponseEventType.REFUSAL_DONE:
            return self.refusal
        return None

    @property
    def final_function_call_arguments(self) -> str | None:
        if self.type == ResponseEventType.FUNCTION_CALL_ARGUMENTS_DONE:
            return self.arguments
        return None

    @property
    def function_call(self) -> FunctionCall | None:
        """The function call carried by an output item or an arguments-done event."""
        if self.type == ResponseEventType.FUNCTION_CALL_ARGUMENTS_DONE:
            return FunctionCall(name=self.name, arguments=self.arguments)
        if self.type in (
            ResponseEventType.OUTPUT_ITEM_ADDED,
            ResponseEventType.OUTPUT_ITEM_DONE,
        ):
            if get_path(self.item, "type") != "function_call":
                return None
            return FunctionCall(
                name=_str_or_none(get_path(self.item, "name")),
                arguments=_str_or_none(get_path(self.item, "arguments")),
                call_id=_str_or_none(get_path(self.item, "call_id")),
            )
        return None

    @property
    def added_annotation(self) -> JsonObject | None:
        if self.type == ResponseEventType.OUTPUT_TEXT_ANNOTATION_ADDED:
            return self.annotation
        return None

    # -- lifecycle ------------------------------------------------------

    @property
    def is_created(self) -> bool:
        return self.type == ResponseEventType.CREATED

    @property
    def is_in_progress(self) -> bool:
        return self.type == ResponseEventType.IN_PROGRESS

    @property
    def is_completed(self) -> bool:
        return self.type == ResponseEventType.COMPLETED

    @property
    def is_incomplete(self) -> bool:
        return self.type == ResponseEventType.INCOMPLETE

    @property
    def is_failed(self) -> bool:
        """True for both failure channels: ``response.failed`` and ``error``."""
        return self.type in (ResponseEventType.FAILED, ResponseEventType.ERROR)

    @property
    def is_terminal(self) -> bool:
        return self.is_completed or self.is_failed or self.is_incomplete

    @property
    def completed_response_id(self) -> str | None:
        if self.is_completed:
            return self.response_id
        return None

    @property
    def error(self) -> str | None:
        """The provider's failure message, wherever this event type keeps it."""
        if self.type == ResponseEventType.ERROR:
            return self.error_message
        if self.type == ResponseEventType.FAILED:
            return _str_or_none(get_path(self.response, "error", "message"))
        return None

    @property
    def failure_code(self) -> str | None:
        if self.type == ResponseEventType.ERROR:
            return self.error_code
        if self.type == ResponseEventType.FAILED:
            return _str_or_none(get_path(self.response, "error", "code"))
        return None

    @property
    def incomplete_reason(self) -> str | None:
        if self.type == ResponseEventType.INCOMPLETE:
            return _str_or_none(
                get_path(self.response, "incomplete_details", "reason")
            )
        return None

    @property
    def usage(self) -> JsonObject | None:
        """Token usage reported on the final response object."""
        if self.type in (ResponseEventType.COMPLETED, ResponseEventType.INCOMPLETE):
            usage = get_path(self.response, "usage")
            return usage if isinstance(usage, dict) else None
        return None


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _is_kind(value: Any, kind: type) -> bool:
    # bool is an int subclass but never a valid index or counter
    if kind is int and isinstance(value, bool):
        return False
    return isinstance(value, kind)


def _decode_strict(payload: str) -> ResponseStreamEvent | None:
    try:
        return ResponseStreamEvent.model_validate_json(payload, strict=True)
    except ValidationError:
        return None


def _decode_permissive(payload: str) -> ResponseStreamEvent | None:
    try:
        data = parse_json(payload)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    event_type = data.get("type")
    if not isinstance(event_type, str):
        return None

    if event_type.endswith(".delta"):
        keys = _DELTA_FIELDS
    else:
        keys = _PERMISSIVE_FIELDS.get(event_type, ())

    fields: dict[str, Any] = {"type": event_type}
    for key in ("sequence_number", *keys):
        value = data.get(key)
        if _is_kind(value, _WIRE_KINDS[key]):
            fields[key] = value

    try:
        return ResponseStreamEvent.model_validate(fields)
    except ValidationError:
        return None


def decode_response_event(line: str) -> ResponseStreamEvent | None:
    """
    Decode one line of a Responses API stream.

    Args:
        line: One complete line, without its newline

    Returns:
        The decoded event, or ``None`` for non-``data:`` lines and for
        payloads that neither the strict nor the permissive pass can read.
    """
    payload = strip_data_prefix(line)
    if payload is None:
        logger.debug("Received unexpected line from OpenAI Responses API", line=line)
        return None

    event = _decode_strict(payload) or _decode_permissive(payload)
    if event is None:
        logger.warning(
            "Received unexpected JSON from OpenAI Responses API", line=line
        )
    return event


async def stream_response_events(
    lines: AsyncIterable[str],
) -> AsyncGenerator[ResponseStreamEvent]:
    """Iterate the Responses API events decoded from ``lines``."""
    parser = StreamingParser(decode_response_event, provider="openai")
    async for event in parser.parse_lines(lines):
        yield event
