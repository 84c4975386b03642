"""OpenRouter chat completion request body and streaming chunks."""

from __future__ import annotations

from .chunk import (
    ChatCompletionChunk,
    ChoiceDelta,
    ChunkChoice,
    ChunkError,
    ChunkUsage,
    ToolCallDelta,
    ToolCallFunctionDelta,
    decode_chat_completion_chunk,
    stream_chat_completion_chunks,
)
from .request_body import (
    DataCollection,
    ImageDetail,
    ImageURLPart,
    Message,
    MessageRole,
    OpenRouterChatCompletionRequestBody,
    Prediction,
    ProviderPreferences,
    Quantization,
    Reasoning,
    ReasoningEffort,
    ResponseFormat,
    Route,
    StreamOptions,
    TextPart,
    Tool,
    ToolChoice,
)

__all__ = [
    "ChatCompletionChunk",
    "ChoiceDelta",
    "ChunkChoice",
    "ChunkError",
    "ChunkUsage",
    "DataCollection",
    "ImageDetail",
    "ImageURLPart",
    "Message",
    "MessageRole",
    "OpenRouterChatCompletionRequestBody",
    "Prediction",
    "ProviderPreferences",
    "Quantization",
    "Reasoning",
    "ReasoningEffort",
    "ResponseFormat",
    "Route",
    "StreamOptions",
    "TextPart",
    "Tool",
    "ToolCallDelta",
    "ToolCallFunctionDelta",
    "ToolChoice",
    "decode_chat_completion_chunk",
    "stream_chat_completion_chunks",
]
