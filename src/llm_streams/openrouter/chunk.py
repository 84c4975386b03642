"""
Streaming chunks of the OpenRouter chat completions API.

Each ``data:`` line carries one ``chat.completion.chunk`` object; the stream
ends with ``data: [DONE]``. Chunks are decoded independently. Joining text
or tool call fragments across chunks is left to the caller.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterable
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..json_value import parse_json
from ..streaming.models import DONE_MARKER, strip_data_prefix
from ..streaming.parser import StreamingParser

logger = structlog.get_logger(__name__)

_CHUNK_CONFIG = ConfigDict(frozen=True, extra="ignore")


class ToolCallFunctionDelta(BaseModel):
    model_config = _CHUNK_CONFIG

    name: str | None = None
    arguments: str | None = None


class ToolCallDelta(BaseModel):
    """Fragment of a tool call; ``index`` identifies the call across chunks."""
    model_config = _CHUNK_CONFIG

    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: ToolCallFunctionDelta | None = None


class ChoiceDelta(BaseModel):
    model_config = _CHUNK_CONFIG

    role: str | None = None
    content: str | None = None
    reasoning: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class ChunkChoice(BaseModel):
    model_config = _CHUNK_CONFIG

    index: int | None = None
    delta: ChoiceDelta | None = None
    finish_reason: str | None = None


class ChunkUsage(BaseModel):
    """Token usage, sent on the last chunk when usage is requested."""
    model_config = _CHUNK_CONFIG

    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class ChunkError(BaseModel):
    """Error reported mid-stream, after the HTTP status was already sent."""
    model_config = _CHUNK_CONFIG

    code: int | str | None = None
    message: str | None = None


class ChatCompletionChunk(BaseModel):
    """One decoded ``chat.completion.chunk``."""
    model_config = _CHUNK_CONFIG

    id: str | None = None
    object: str | None = None
    created: int | None = None
    model: str | None = None
    choices: list[ChunkChoice] = Field(default_factory=list)
    usage: ChunkUsage | None = None
    error: ChunkError | None = None

    @property
    def text_delta(self) -> str | None:
        delta = _first_delta(self)
        return delta.content if delta else None

    @property
    def reasoning_delta(self) -> str | None:
        delta = _first_delta(self)
        return delta.reasoning if delta else None

    @property
    def tool_call_deltas(self) -> list[ToolCallDelta]:
        delta = _first_delta(self)
        if delta is None or not delta.tool_calls:
            return []
        return list(delta.tool_calls)

    @property
    def finish_reason(self) -> str | None:
        if not self.choices:
            return None
        return self.choices[0].finish_reason

    @property
    def is_failed(self) -> bool:
        return self.error is not None or self.finish_reason == "error"

    @property
    def error_message(self) -> str | None:
        return self.error.message if self.error else None


def _first_delta(chunk: ChatCompletionChunk) -> ChoiceDelta | None:
    if not chunk.choices:
        return None
    return chunk.choices[0].delta


def _decode_strict(payload: str) -> ChatCompletionChunk | None:
    try:
        return ChatCompletionChunk.model_validate_json(payload, strict=True)
    except ValidationError:
        return None


def _pick(data: dict[str, Any], key: str, kind: type) -> Any:
    value = data.get(key)
    if kind is int and isinstance(value, bool):
        return None
    return value if isinstance(value, kind) else None


def _validate_or_none(model: type[BaseModel], value: Any) -> BaseModel | None:
    try:
        return model.model_validate(value)
    except ValidationError:
        return None


def _tool_calls(delta: dict[str, Any]) -> list[ToolCallDelta] | None:
    tool_calls = delta.get("tool_calls")
    if not isinstance(tool_calls, list):
        return None
    valid = [_validate_or_none(ToolCallDelta, entry) for entry in tool_calls]
    return [entry for entry in valid if entry is not None]


def _decode_permissive(payload: str) -> ChatCompletionChunk | None:
    try:
        data = parse_json(payload)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None

    fields: dict[str, Any] = {
        "id": _pick(data, "id", str),
        "model": _pick(data, "model", str),
        "usage": _validate_or_none(ChunkUsage, data.get("usage")),
    }

    choices = data.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        choice = choices[0]
        delta = choice.get("delta")
        delta = delta if isinstance(delta, dict) else {}
        fields["choices"] = [{
            "index": _pick(choice, "index", int),
            "finish_reason": _pick(choice, "finish_reason", str),
            "delta": {
                "role": _pick(delta, "role", str),
                "content": _pick(delta, "content", str),
                "reasoning": _pick(delta, "reasoning", str),
                "tool_calls": _tool_calls(delta),
            },
        }]

    error = data.get("error")
    if isinstance(error, dict):
        code = _pick(error, "code", int)
        fields["error"] = {
            "code": code if code is not None else _pick(error, "code", str),
            "message": _pick(error, "message", str),
        }

    if "choices" not in fields and "error" not in fields:
        return None

    try:
        return ChatCompletionChunk.model_validate(fields)
    except ValidationError:
        return None


def decode_chat_completion_chunk(line: str) -> ChatCompletionChunk | None:
    """
    Decode one line of an OpenRouter chat completions stream.

    Returns:
        The decoded chunk, or ``None`` for non-``data:`` lines, the
        ``[DONE]`` marker, and payloads neither pass can read.
    """
    payload = strip_data_prefix(line)
    if payload is None:
        logger.debug("Received unexpected line from OpenRouter", line=line)
        return None

    if payload.strip() == DONE_MARKER:
        logger.debug("OpenRouter stream finished")
        return None

    chunk = _decode_strict(payload) or _decode_permissive(payload)
    if chunk is None:
        logger.warning("Received unexpected JSON from OpenRouter", line=line)
    return chunk


async def stream_chat_completion_chunks(
    lines: AsyncIterable[str],
) -> AsyncGenerator[ChatCompletionChunk]:
    """Iterate the chat completion chunks decoded from ``lines``."""
    parser = StreamingParser(decode_chat_completion_chunk, provider="openrouter")
    async for chunk in parser.parse_lines(lines):
        yield chunk
