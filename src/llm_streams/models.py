"""
Provider connection dataclasses.

Request and event shapes live next to the provider they belong to
(``llm_streams.openai`` and ``llm_streams.openrouter``); this module only
describes how to reach a provider.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProviderType(Enum):
    """Supported LLM providers."""
    OPENAI = "openai"
    OPENROUTER = "openrouter"


@dataclass(frozen=True)
class ProviderConfig:
    """Provider configuration."""
    provider: ProviderType
    base_url: str
    api_key: str
    model: str | None = None

    # Connection settings
    connect_timeout: float = 10.0
    read_timeout: float = 60.0
    write_timeout: float = 10.0
    pool_timeout: float = 10.0

    # OpenRouter attribution headers
    app_name: str | None = None
    app_url: str | None = None

    def headers(self) -> dict[str, str]:
        """Request headers for this provider, including authorization."""
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "text/event-stream",
        }
        if self.provider is ProviderType.OPENROUTER:
            if self.app_url:
                headers["HTTP-Referer"] = self.app_url
            if self.app_name:
                headers["X-Title"] = self.app_name
        return headers
