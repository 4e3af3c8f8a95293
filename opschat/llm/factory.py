"""
LLM Provider Factory

Creates the configured LLM provider instance.
"""

import logging
from typing import Literal

from opschat.config import LLMSettings
from opschat.llm.base import BaseLLMProvider
from opschat.llm.local import LocalProvider
from opschat.llm.openai import OpenAIProvider

logger = logging.getLogger(__name__)


class LLMProviderFactory:
    """Factory for creating LLM provider instances."""

    PROVIDERS = {
        "openai": OpenAIProvider,
        "local": LocalProvider,
    }

    @staticmethod
    def create_provider(
        provider_type: Literal["openai", "local"],
        config: LLMSettings,
    ) -> BaseLLMProvider:
        """
        Create an LLM provider instance.

        Raises:
            ValueError: If provider type is unknown or required config is missing
        """
        if provider_type not in LLMProviderFactory.PROVIDERS:
            raise ValueError(
                f"Unknown provider type: {provider_type}. "
                f"Available providers: {list(LLMProviderFactory.PROVIDERS.keys())}"
            )

        logger.info(f"Creating {provider_type} provider", extra={"provider": provider_type})

        if provider_type == "openai":
            return LLMProviderFactory._create_openai(config)
        return LLMProviderFactory._create_local(config)

    @staticmethod
    def create_default_provider(config: LLMSettings) -> BaseLLMProvider:
        """Create provider using default_provider from config."""
        return LLMProviderFactory.create_provider(config.default_provider, config)

    @staticmethod
    def _create_openai(config: LLMSettings) -> OpenAIProvider:
        if not config.openai_api_key:
            raise ValueError("OpenAI API key is required but not configured")

        return OpenAIProvider(
            api_key=config.openai_api_key,
            model=config.openai_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    @staticmethod
    def _create_local(config: LLMSettings) -> LocalProvider:
        return LocalProvider(
            base_url=config.local_base_url,
            model=config.local_model,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )
