"""
Error types for provider requests and streams.

Only transport-level problems surface as exceptions:
- Source failures while reading the streamed body (``StreamingError``)
- Rate limit responses with retry guidance (``RateLimitError``)
- Provider configuration problems and non-2xx responses (``ProviderError``)

Malformed stream frames are never raised; the decoders log and skip them.
Failures reported by the provider inside the stream (``error`` and
``response.failed`` events) are ordinary decoded events.
"""

from __future__ import annotations

import httpx
from pydantic import ValidationError


class LLMError(Exception):
    """Base LLM error with rich context."""

    def __init__(
        self,
        message: str,
        provider: str,
        model: str,
        status_code: int | None = None,
        response_data: dict | None = None,
    ):
        super().__init__(message)
        self.provider = provider
        self.model = model
        self.status_code = status_code
        self.response_data = response_data or {}


class RateLimitError(LLMError):
    """Rate limit error with retry information."""

    def __init__(
        self,
        message: str,
        retry_after: float | None = None,
        **kwargs,
    ):
        super().__init__(message, **kwargs)
        self.retry_after = retry_after


class StreamingError(LLMError):
    """The line source failed while a stream was being read."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        model: str = "unknown",
        **kwargs,
    ):
        super().__init__(message, provider, model, **kwargs)


class ProviderError(LLMError):
    """Provider-specific configuration errors or rejected requests."""

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        model: str = "unknown",
        **kwargs,
    ):
        super().__init__(message, provider, model, **kwargs)


def classify_error(error: BaseException) -> str:
    """
    Map an exception to a short category used in structured logs.

    Args:
        error: The exception to classify

    Returns:
        One of ``rate_limit_error``, ``provider_error``, ``streaming_error``,
        ``timeout_error``, ``connection_error``, ``validation_error``,
        ``parameter_error`` or ``unknown_error``.
    """
    if isinstance(error, RateLimitError):
        return "rate_limit_error"
    if isinstance(error, ProviderError):
        return "provider_error"
    if isinstance(error, StreamingError):
        return "streaming_error"
    if isinstance(error, TimeoutError | httpx.TimeoutException):
        return "timeout_error"
    if isinstance(error, ConnectionError | httpx.TransportError):
        return "connection_error"
    if isinstance(error, ValidationError):
        return "validation_error"
    if isinstance(error, ValueError | TypeError):
        return "parameter_error"
    return "unknown_error"
