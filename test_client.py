"""
Tests for the httpx streaming clients, using httpx.MockTransport.
"""

import json

import httpx
import pytest

from llm_streams.client import OpenAIResponsesClient, OpenRouterClient
from llm_streams.exceptions import ProviderError, RateLimitError, StreamingError
from llm_streams.models import ProviderConfig, ProviderType
from llm_streams.openrouter import Message, OpenRouterChatCompletionRequestBody

OPENAI_CONFIG = ProviderConfig(
    provider=ProviderType.OPENAI,
    base_url="https://api.openai.test/v1",
    api_key="sk-test",
    model="gpt-test",
)

OPENROUTER_CONFIG = ProviderConfig(
    provider=ProviderType.OPENROUTER,
    base_url="https://openrouter.test/api/v1",
    api_key="or-test",
    model="openai/gpt-test",
    app_name="tests",
    app_url="https://example.com",
)

RESPONSES_STREAM = (
    "event: response.created\n"
    'data: {"type":"response.created","response":{"id":"resp_1","status":"in_progress"}}\n'
    "\n"
    "event: response.output_text.delta\n"
    'data: {"type":"response.output_text.delta","delta":"Hel","item_id":"msg_1",'
    '"output_index":0,"content_index":0}\n'
    "\n"
    'data: {"type":"response.output_text.delta","delta":"lo","item_id":"msg_1",'
    '"output_index":0,"content_index":0}\n'
    "\n"
    "data: {not json}\n"
    "\n"
    'data: {"type":"response.completed","response":{"id":"resp_1","status":"completed"}}\n'
    "\n"
)


class RecordingHandler:
    """MockTransport handler that records requests and replays a response."""

    def __init__(self, response: httpx.Response):
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


class BrokenStream(httpx.AsyncByteStream):
    """Body that delivers one frame and then loses the connection."""

    async def __aiter__(self):
        yield b'data: {"type":"response.output_text.delta","delta":"partial"}\n\n'
        raise httpx.ReadError("connection reset by peer")


def event_stream_response(body: str) -> httpx.Response:
    return httpx.Response(
        200, headers={"content-type": "text/event-stream"}, content=body.encode()
    )


class TestOpenAIResponsesClient:
    """Streaming from the Responses API."""

    @pytest.mark.asyncio
    async def test_stream_response(self):
        handler = RecordingHandler(event_stream_response(RESPONSES_STREAM))

        async with OpenAIResponsesClient(
            OPENAI_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            events = [event async for event in client.stream_response({"input": "hi"})]

        assert [event.type for event in events] == [
            "response.created",
            "response.output_text.delta",
            "response.output_text.delta",
            "response.completed",
        ]
        assert "".join(event.text_delta or "" for event in events) == "Hello"
        assert events[-1].completed_response_id == "resp_1"

        [request] = handler.requests
        assert request.url.path == "/v1/responses"
        assert request.headers["Authorization"] == "Bearer sk-test"
        assert json.loads(request.content) == {
            "input": "hi",
            "stream": True,
            "model": "gpt-test",
        }

    @pytest.mark.asyncio
    async def test_explicit_model_wins(self):
        handler = RecordingHandler(event_stream_response(""))

        async with OpenAIResponsesClient(
            OPENAI_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            events = [
                event async for event in client.stream_response(
                    {"model": "gpt-other", "input": "hi", "stream": False}
                )
            ]

        assert events == []
        sent = json.loads(handler.requests[0].content)
        assert sent["model"] == "gpt-other"
        assert sent["stream"] is True

    @pytest.mark.asyncio
    async def test_source_failure_propagates(self):
        handler = RecordingHandler(httpx.Response(200, stream=BrokenStream()))
        received = []

        async with OpenAIResponsesClient(
            OPENAI_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(StreamingError) as exc_info:
                async for event in client.stream_response({"input": "hi"}):
                    received.append(event)

        assert [event.text_delta for event in received] == ["partial"]
        assert exc_info.value.provider == "openai"
        assert exc_info.value.model == "gpt-test"
        assert isinstance(exc_info.value.__cause__, httpx.ReadError)

    @pytest.mark.asyncio
    async def test_rate_limit(self):
        handler = RecordingHandler(httpx.Response(
            429,
            headers={"retry-after": "2"},
            json={"error": {"message": "Rate limit reached"}},
        ))

        async with OpenAIResponsesClient(
            OPENAI_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(RateLimitError) as exc_info:
                async for _ in client.stream_response({"input": "hi"}):
                    pass

        assert exc_info.value.retry_after == 2.0
        assert exc_info.value.status_code == 429
        assert exc_info.value.response_data == {"error": {"message": "Rate limit reached"}}

    @pytest.mark.asyncio
    async def test_error_status(self):
        handler = RecordingHandler(httpx.Response(500, text="upstream exploded"))

        async with OpenAIResponsesClient(
            OPENAI_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            with pytest.raises(ProviderError, match="500") as exc_info:
                async for _ in client.stream_response({"input": "hi"}):
                    pass

        assert exc_info.value.response_data == {"raw": "upstream exploded"}


class TestOpenRouterClient:
    """Streaming chat completions from OpenRouter."""

    @pytest.mark.asyncio
    async def test_stream_chat_completion(self):
        body = (
            ": OPENROUTER PROCESSING\n\n"
            'data: {"id":"gen-1","choices":[{"index":0,"delta":{"content":"Hi"}}]}\n\n'
            'data: {"id":"gen-1","choices":[{"index":0,"delta":{},"finish_reason":"stop"}],'
            '"usage":{"prompt_tokens":1,"completion_tokens":1,"total_tokens":2}}\n\n'
            "data: [DONE]\n\n"
        )
        handler = RecordingHandler(event_stream_response(body))
        request_body = OpenRouterChatCompletionRequestBody(messages=[Message.user("hello")])

        async with OpenRouterClient(
            OPENROUTER_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            chunks = [
                chunk async for chunk in client.stream_chat_completion(
                    request_body, include_usage=True
                )
            ]

        assert [chunk.text_delta for chunk in chunks] == ["Hi", None]
        assert chunks[-1].finish_reason == "stop"
        assert chunks[-1].usage.total_tokens == 2

        [request] = handler.requests
        assert request.url.path == "/api/v1/chat/completions"
        assert request.headers["X-Title"] == "tests"
        assert request.headers["HTTP-Referer"] == "https://example.com"
        assert json.loads(request.content) == {
            "messages": [{"content": "hello", "role": "user"}],
            "model": "openai/gpt-test",
            "stream": True,
            "stream_options": {"include_usage": True},
        }

    @pytest.mark.asyncio
    async def test_models_list_is_not_overridden(self):
        handler = RecordingHandler(event_stream_response("data: [DONE]\n\n"))
        request_body = OpenRouterChatCompletionRequestBody(
            messages=[Message.user("hello")],
            models=["openai/gpt-4o", "anthropic/claude-3.5-sonnet"],
        )

        async with OpenRouterClient(
            OPENROUTER_CONFIG, transport=httpx.MockTransport(handler)
        ) as client:
            chunks = [chunk async for chunk in client.stream_chat_completion(request_body)]

        assert chunks == []
        sent = json.loads(handler.requests[0].content)
        assert "model" not in sent
        assert sent["models"] == ["openai/gpt-4o", "anthropic/claude-3.5-sonnet"]
