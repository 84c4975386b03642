"""
Typed request models and streaming decoders for LLM provider APIs.

This package provides:
- OpenAI Responses API stream events with a forward-compatible decoder
- OpenRouter chat completion request bodies and stream chunks
- A pull-based stream iterator over server-sent event lines
- httpx clients that feed provider streams into the decoders
"""

from __future__ import annotations

from .client import OpenAIResponsesClient, OpenRouterClient, StreamingHTTPClient
from .config import Configuration
from .exceptions import LLMError, ProviderError, RateLimitError, StreamingError
from .logging_utils import configure_logging
from .models import ProviderConfig, ProviderType
from .openai import (
    FunctionCall,
    ResponseEventType,
    ResponseStreamEvent,
    decode_response_event,
    stream_response_events,
)
from .openrouter import (
    ChatCompletionChunk,
    OpenRouterChatCompletionRequestBody,
    decode_chat_completion_chunk,
    stream_chat_completion_chunks,
)
from .streaming import StreamingParser

__all__ = [
    "ChatCompletionChunk",
    "Configuration",
    "FunctionCall",
    "LLMError",
    "OpenAIResponsesClient",
    "OpenRouterChatCompletionRequestBody",
    "OpenRouterClient",
    "ProviderConfig",
    "ProviderError",
    "ProviderType",
    "RateLimitError",
    "ResponseEventType",
    "ResponseStreamEvent",
    "StreamingError",
    "StreamingHTTPClient",
    "StreamingParser",
    "configure_logging",
    "decode_chat_completion_chunk",
    "decode_response_event",
    "stream_chat_completion_chunks",
    "stream_response_events",
]
