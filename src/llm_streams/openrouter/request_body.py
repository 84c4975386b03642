"""
OpenRouter chat completion request body.

https://openrouter.ai/docs/api-reference/chat-completion

OpenRouter accepts the general chat completion request and adds its own
routing parameters (``models``, ``route``, ``provider``, ``transforms``,
``top_a``, ...). Those are passed through as configuration; nothing here
interprets them.

Every dataclass encodes itself with ``to_json()`` into the exact wire
shape. Fields left as ``None`` are omitted. Polymorphic parts pick their
shape from their variant: the role for :class:`Message`, ``type`` for
:class:`ResponseFormat`, :class:`Tool` and :class:`ToolChoice`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal

from ..json_value import JsonObject, JsonValue, dumps, validate_json_object


def _encode(value: Any) -> JsonValue:
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "to_json"):
        return value.to_json()
    if isinstance(value, list | tuple):
        return [_encode(item) for item in value]
    if isinstance(value, dict):
        return {key: _encode(item) for key, item in value.items()}
    return value


def _encode_fields(obj: Any) -> JsonObject:
    """Encode a dataclass field by field in declaration order, skipping ``None``."""
    return {
        field.name: _encode(value)
        for field in dataclasses.fields(obj)
        if (value := getattr(obj, field.name)) is not None
    }


class Route(Enum):
    """OpenRouter model routing strategy. See openrouter.ai/docs/model-routing"""
    FALLBACK = "fallback"


class MessageRole(Enum):
    """Roles accepted in request messages."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ImageDetail(Enum):
    AUTO = "auto"
    LOW = "low"
    HIGH = "high"


@dataclass(frozen=True)
class TextPart:
    """Text part of a multi-part user message."""
    text: str

    def to_json(self) -> JsonObject:
        return {"type": "text", "text": self.text}


@dataclass(frozen=True)
class ImageURLPart:
    """Image part of a multi-part user message; ``url`` may be a data URL."""
    url: str
    detail: ImageDetail | None = None

    def to_json(self) -> JsonObject:
        image_url: JsonObject = {"url": self.url}
        if self.detail is not None:
            image_url["detail"] = self.detail.value
        return {"type": "image_url", "image_url": image_url}


ContentPart = TextPart | ImageURLPart


@dataclass(frozen=True)
class Message:
    """A conversation message. Only user messages may carry content parts."""
    role: MessageRole
    content: str | list[ContentPart]
    name: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.content, str) and self.role is not MessageRole.USER:
            raise ValueError(
                f"{self.role.value} messages only accept text content"
            )

    @classmethod
    def system(cls, content: str, name: str | None = None) -> Message:
        return cls(MessageRole.SYSTEM, content, name)

    @classmethod
    def user(cls, content: str | list[ContentPart], name: str | None = None) -> Message:
        return cls(MessageRole.USER, content, name)

    @classmethod
    def assistant(cls, content: str, name: str | None = None) -> Message:
        return cls(MessageRole.ASSISTANT, content, name)

    def to_json(self) -> JsonObject:
        message: JsonObject = {
            "content": _encode(self.content),
            "role": self.role.value,
        }
        if self.name is not None:
            message["name"] = self.name
        return message


class ReasoningEffort(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class Reasoning:
    """Reasoning token configuration (replaces ``include_reasoning``)."""
    effort: ReasoningEffort | None = None
    max_tokens: int | None = None
    exclude: bool | None = None

    def to_json(self) -> JsonObject:
        return _encode_fields(self)


@dataclass(frozen=True)
class ResponseFormat:
    """Output format: plain text, any JSON object, or a named JSON schema."""
    type: Literal["text", "json_object", "json_schema"]
    name: str | None = None
    description: str | None = None
    schema: JsonObject | None = None
    strict: bool | None = None

    def __post_init__(self) -> None:
        if self.type == "json_schema" and not self.name:
            raise ValueError("json_schema response format requires a name")
        if self.schema is not None:
            validate_json_object(self.schema)

    @classmethod
    def text(cls) -> ResponseFormat:
        return cls("text")

    @classmethod
    def json_object(cls) -> ResponseFormat:
        return cls("json_object")

    @classmethod
    def json_schema(
        cls,
        name: str,
        description: str | None = None,
        schema: JsonObject | None = None,
        strict: bool | None = None,
    ) -> ResponseFormat:
        return cls("json_schema", name, description, schema, strict)

    def to_json(self) -> JsonObject:
        if self.type != "json_schema":
            return {"type": self.type}
        json_schema: JsonObject = {"name": self.name}
        if self.description is not None:
            json_schema["description"] = self.description
        if self.schema is not None:
            json_schema["schema"] = self.schema
        if self.strict is not None:
            json_schema["strict"] = self.strict
        return {"type": "json_schema", "json_schema": json_schema}


@dataclass(frozen=True)
class StreamOptions:
    include_usage: bool

    def to_json(self) -> JsonObject:
        return {"include_usage": self.include_usage}


@dataclass(frozen=True)
class Tool:
    """Function tool definition; ``parameters`` is a JSON schema object."""
    name: str
    description: str | None = None
    parameters: JsonObject | None = None
    strict: bool | None = None
    type: Literal["function"] = "function"

    def __post_init__(self) -> None:
        if self.parameters is not None:
            validate_json_object(self.parameters)

    @classmethod
    def function(
        cls,
        name: str,
        description: str | None = None,
        parameters: JsonObject | None = None,
        strict: bool | None = None,
    ) -> Tool:
        return cls(name, description, parameters, strict)

    def to_json(self) -> JsonObject:
        function: JsonObject = {"name": self.name}
        if self.description is not None:
            function["description"] = self.description
        if self.parameters is not None:
            function["parameters"] = self.parameters
        if self.strict is not None:
            function["strict"] = self.strict
        return {"type": self.type, "function": function}


@dataclass(frozen=True)
class ToolChoice:
    """Tool selection: ``none``, ``auto``, ``required`` or one named function."""
    mode: Literal["none", "auto", "required", "function"]
    function_name: str | None = None

    def __post_init__(self) -> None:
        if (self.mode == "function") != (self.function_name is not None):
            raise ValueError(
                "function_name is required for, and only for, a specific tool choice"
            )

    @classmethod
    def none(cls) -> ToolChoice:
        return cls("none")

    @classmethod
    def auto(cls) -> ToolChoice:
        return cls("auto")

    @classmethod
    def required(cls) -> ToolChoice:
        return cls("required")

    @classmethod
    def specific(cls, function_name: str) -> ToolChoice:
        return cls("function", function_name)

    def to_json(self) -> JsonValue:
        if self.mode != "function":
            return self.mode
        return {"type": "function", "function": {"name": self.function_name}}


@dataclass(frozen=True)
class Prediction:
    """Predicted output used to reduce latency."""
    content: str

    def to_json(self) -> JsonObject:
        return {"content": self.content, "type": "content"}


class Quantization(Enum):
    INT4 = "int4"
    INT8 = "int8"
    FP6 = "fp6"
    FP8 = "fp8"
    FP16 = "fp16"
    BF16 = "bf16"
    UNKNOWN = "unknown"


class DataCollection(Enum):
    ALLOW = "allow"
    DENY = "deny"


@dataclass(frozen=True)
class ProviderPreferences:
    """OpenRouter provider routing preferences, passed through unchanged."""
    allow_fallbacks: bool | None = None
    data_collection: DataCollection | None = None
    ignore: list[str] | None = None
    order: list[str] | None = None
    quantizations: list[Quantization] | None = None
    require_parameters: bool | None = None

    def to_json(self) -> JsonObject:
        return _encode_fields(self)


@dataclass(frozen=True)
class OpenRouterChatCompletionRequestBody:
    """Chat completion request body. Field names are the wire keys."""

    # Required
    messages: list[Message]

    # Optional
    frequency_penalty: float | None = None
    include_reasoning: bool | None = None  # deprecated, see ``reasoning``
    logit_bias: dict[str, float] | None = None
    logprobs: bool | None = None
    max_tokens: int | None = None
    metadata: JsonObject | None = None
    model: str | None = None
    models: list[str] | None = None  # OpenRouter-specific fallback list
    n: int | None = None
    parallel_tool_calls: bool | None = None
    prediction: Prediction | None = None
    provider: ProviderPreferences | None = None
    presence_penalty: float | None = None
    reasoning: Reasoning | None = None
    repetition_penalty: float | None = None
    response_format: ResponseFormat | None = None
    route: Route | None = None  # OpenRouter-specific
    seed: int | None = None
    stop: list[str] | None = None
    store: bool | None = None
    stream: bool | None = None
    stream_options: StreamOptions | None = None
    temperature: float | None = None
    tools: list[Tool] | None = None
    tool_choice: ToolChoice | None = None
    top_a: float | None = None
    top_logprobs: int | None = None
    top_p: float | None = None
    transforms: list[str] | None = None
    user: str | None = None

    def __post_init__(self) -> None:
        if self.metadata is not None:
            validate_json_object(self.metadata)

    def with_streaming(
        self, include_usage: bool | None = None
    ) -> OpenRouterChatCompletionRequestBody:
        """Copy of this body with ``stream`` enabled."""
        stream_options = (
            StreamOptions(include_usage) if include_usage is not None
            else self.stream_options
        )
        return dataclasses.replace(self, stream=True, stream_options=stream_options)

    def to_json(self) -> JsonObject:
        return _encode_fields(self)

    def to_json_string(self) -> str:
        return dumps(self.to_json())
