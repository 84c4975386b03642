"""Configuration management for llm-streams clients."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .logging_utils import configure_logging
from .models import ProviderConfig, ProviderType

DEFAULT_CONFIG_PATH = Path(__file__).with_name("config.yaml")

# Provider name -> environment variable holding its API key
PROVIDER_KEY_MAP = {
    "openai": "OPENAI_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}


class Configuration:
    """Manages configuration and environment variables for provider clients."""

    def __init__(self, config_path: str | Path | None = None) -> None:
        """Initialize configuration from YAML and environment variables."""
        self.load_env()  # Load .env for API keys
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config = self._load_yaml_config()

    @staticmethod
    def load_env() -> None:
        """Load environment variables from .env file."""
        load_dotenv()

    def _load_yaml_config(self) -> dict[str, Any]:
        """Load configuration from YAML file."""
        with open(self._config_path) as file:
            config = yaml.safe_load(file)
            if not isinstance(config, dict):
                raise ValueError(
                    f"Config file must be YAML dict, got {type(config)}"
                )
            return config

    def get_config_dict(self) -> dict[str, Any]:
        """Get the full configuration dictionary."""
        return self._config

    def get_api_key(self, provider: str) -> str:
        """Get the API key for a provider.

        Args:
            provider: Provider name as used under ``providers`` in config.yaml.

        Returns:
            The API key as a string.

        Raises:
            ValueError: If the provider is unknown or its key is not set.
        """
        env_key = PROVIDER_KEY_MAP.get(provider)
        if not env_key:
            raise ValueError(
                f"Unknown provider '{provider}' - no API key mapping found"
            )

        api_key = os.getenv(env_key)
        if not api_key:
            raise ValueError(
                f"API key '{env_key}' not found in environment variables "
                f"for provider '{provider}'"
            )

        return api_key

    def get_provider_config(self, provider: str) -> ProviderConfig:
        """Get validated connection settings for a provider.

        Raises:
            ValueError: If required parameters are missing or invalid.
        """
        providers = self._config.get("providers", {})
        if provider not in providers:
            raise ValueError(
                f"Provider '{provider}' not found in providers config"
            )
        provider_config = providers[provider] or {}

        required_keys = [
            "base_url", "connect_timeout", "read_timeout",
            "write_timeout", "pool_timeout",
        ]
        for key in required_keys:
            if key not in provider_config:
                raise ValueError(
                    f"providers.{provider}.{key} must be explicitly "
                    "configured in config.yaml"
                )

        for key in required_keys[1:]:
            if provider_config[key] <= 0:
                raise ValueError(f"providers.{provider}.{key} must be positive")

        return ProviderConfig(
            provider=ProviderType(provider),
            base_url=provider_config["base_url"],
            api_key=self.get_api_key(provider),
            model=provider_config.get("model"),
            connect_timeout=float(provider_config["connect_timeout"]),
            read_timeout=float(provider_config["read_timeout"]),
            write_timeout=float(provider_config["write_timeout"]),
            pool_timeout=float(provider_config["pool_timeout"]),
            app_name=provider_config.get("app_name"),
            app_url=provider_config.get("app_url"),
        )

    def get_logging_config(self) -> dict[str, Any]:
        """Get logging configuration from YAML."""
        logging_config = self._config.get("logging", {})
        return {
            "level": logging_config.get("level", "INFO"),
            "json": bool(logging_config.get("json", False)),
        }

    def apply_logging_config(self) -> None:
        """Configure structlog from the ``logging`` section."""
        logging_config = self.get_logging_config()
        configure_logging(
            logging_config["level"], json_output=logging_config["json"]
        )
