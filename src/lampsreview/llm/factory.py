"""Factory for creating LLM providers from configuration."""

from __future__ import annotations

from lampsreview.config import AIConfig
from lampsreview.llm.base import LLMProvider


def create_provider(config: AIConfig, api_key: str | None = None) -> LLMProvider:
    """Create an LLM provider from configuration.

    Args:
        config: AI configuration with provider, model, etc.
        api_key: Overrides the key read from the environment.

    Returns:
        An initialized LLM provider.

    Raises:
        ValueError: If the provider is unknown.
        ProviderNotAvailableError: If the provider's SDK is not installed.
    """
    provider = config.provider.lower()
    key = api_key or config.api_key

    if provider == "openrouter":
        from lampsreview.llm.openai_provider import (
            OPENROUTER_BASE_URL,
            OPENROUTER_HEADERS,
            OpenAIProvider,
        )

        return OpenAIProvider(
            model=config.model,
            api_key=key,
            base_url=config.base_url or OPENROUTER_BASE_URL,
            default_headers=OPENROUTER_HEADERS,
        )
    elif provider == "openai" or provider == "local":
        from lampsreview.llm.openai_provider import OpenAIProvider

        return OpenAIProvider(
            model=config.model,
            # Local OpenAI-compatible servers ignore the key but the SDK requires one
            api_key=key or ("not-needed" if provider == "local" else None),
            base_url=config.base_url,
        )
    elif provider == "anthropic":
        from lampsreview.llm.anthropic_provider import AnthropicProvider

        return AnthropicProvider(
            model=config.model,
            api_key=key,
            base_url=config.base_url,
        )
    else:
        raise ValueError(
            f"Unknown LLM provider: '{provider}'. "
            f"Supported providers: openrouter, openai, anthropic, local"
        )
