"""
HTTP streaming clients for the supported providers.

The clients own the transport: they post a request body, check the status
of the streamed response and hand its lines to the provider decoders.
Retry and backoff policy is left to callers.
"""

from __future__ import annotations

import dataclasses
from collections.abc import AsyncGenerator, Mapping
from contextlib import aclosing
from typing import Any

import httpx

from .config import Configuration
from .exceptions import ProviderError, RateLimitError, StreamingError
from .json_value import JsonObject, JsonValue, validate_json_object
from .logging_utils import operation_context
from .models import ProviderConfig, ProviderType
from .openai.response_event import ResponseStreamEvent, stream_response_events
from .openrouter.chunk import ChatCompletionChunk, stream_chat_completion_chunks
from .openrouter.request_body import OpenRouterChatCompletionRequestBody

HTTP_TOO_MANY_REQUESTS = 429


class StreamingHTTPClient:
    """Posts JSON bodies and exposes the streamed response as text lines."""

    def __init__(
        self,
        config: ProviderConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers=config.headers(),
            timeout=httpx.Timeout(
                connect=config.connect_timeout,
                read=config.read_timeout,
                write=config.write_timeout,
                pool=config.pool_timeout,
            ),
            transport=transport,
        )

    @property
    def provider(self) -> str:
        return self.config.provider.value

    async def stream_lines(self, path: str, body: JsonObject) -> AsyncGenerator[str]:
        """
        POST ``body`` to ``path`` and yield the response body line by line.

        Raises:
            RateLimitError: The provider answered 429.
            ProviderError: The provider answered with another non-2xx status.
            StreamingError: The connection failed before or while streaming.
        """
        model = body.get("model") if isinstance(body.get("model"), str) else None
        model = model or self.config.model or "unknown"
        context = {"provider": self.provider, "model": model, "path": path}

        try:
            async with operation_context("stream_request", context=context):
                async with self._client.stream("POST", path, json=body) as response:
                    if not response.is_success:
                        error_text = (await response.aread()).decode(errors="replace")
                        raise self._status_error(response, error_text, model)

                    async for line in response.aiter_lines():
                        yield line
        except httpx.HTTPError as e:
            raise StreamingError(
                f"HTTP error during streaming: {e}",
                provider=self.provider,
                model=model,
            ) from e

    def _status_error(
        self, response: httpx.Response, error_text: str, model: str
    ) -> ProviderError | RateLimitError:
        try:
            response_data = response.json()
        except ValueError:
            response_data = {"raw": error_text}
        if not isinstance(response_data, dict):
            response_data = {"raw": error_text}

        message = (
            f"Streaming API error {response.status_code}: {error_text}"
        )
        if response.status_code == HTTP_TOO_MANY_REQUESTS:
            return RateLimitError(
                message,
                retry_after=_parse_retry_after(response.headers.get("retry-after")),
                provider=self.provider,
                model=model,
                status_code=response.status_code,
                response_data=response_data,
            )
        return ProviderError(
            message,
            provider=self.provider,
            model=model,
            status_code=response.status_code,
            response_data=response_data,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> StreamingHTTPClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()


def _parse_retry_after(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


class OpenAIResponsesClient(StreamingHTTPClient):
    """Streams events from the OpenAI Responses API (``POST /responses``)."""

    @classmethod
    def from_configuration(
        cls, configuration: Configuration, **kwargs: Any
    ) -> OpenAIResponsesClient:
        return cls(configuration.get_provider_config(ProviderType.OPENAI.value), **kwargs)

    async def stream_response(
        self, body: Mapping[str, JsonValue]
    ) -> AsyncGenerator[ResponseStreamEvent]:
        """
        Create a response with ``stream: true`` and yield its events in order.

        Args:
            body: Responses API request body; ``model`` defaults to the
                configured model.
        """
        payload: JsonObject = {**body, "stream": True}
        if "model" not in payload and self.config.model:
            payload["model"] = self.config.model
        payload = validate_json_object(payload)

        async with aclosing(self.stream_lines("/responses", payload)) as lines:
            async for event in stream_response_events(lines):
                yield event


class OpenRouterClient(StreamingHTTPClient):
    """Streams chat completion chunks from OpenRouter (``POST /chat/completions``)."""

    @classmethod
    def from_configuration(
        cls, configuration: Configuration, **kwargs: Any
    ) -> OpenRouterClient:
        return cls(
            configuration.get_provider_config(ProviderType.OPENROUTER.value), **kwargs
        )

    async def stream_chat_completion(
        self,
        body: OpenRouterChatCompletionRequestBody,
        *,
        include_usage: bool | None = None,
    ) -> AsyncGenerator[ChatCompletionChunk]:
        """Send ``body`` with streaming enabled and yield its chunks in order."""
        body = body.with_streaming(include_usage)
        if body.model is None and body.models is None and self.config.model:
            body = dataclasses.replace(body, model=self.config.model)

        async with aclosing(
            self.stream_lines("/chat/completions", body.to_json())
        ) as lines:
            async for chunk in stream_chat_completion_chunks(lines):
                yield chunk
