"""
LLM Provider Module

Provider abstraction for the language model behind the assistant (OpenAI or a
local OpenAI-compatible/Ollama server), plus the schema-bound SQL chain.

Usage:
    from opschat.llm import LLMProviderFactory, LLMRequest
    from opschat.config import get_settings

    provider = LLMProviderFactory.create_default_provider(get_settings().llm)
    response = await provider.generate(LLMRequest.from_prompt("Hello!"))
    print(response.content)
"""

from opschat.llm.base import BaseLLMProvider
from opschat.llm.factory import LLMProviderFactory
from opschat.llm.local import LocalProvider
from opschat.llm.models import LLMMessage, LLMRequest, LLMResponse, LLMUsage
from opschat.llm.openai import OpenAIProvider
from opschat.llm.sql_chain import SQLQueryChain

__all__ = [
    # Base classes
    "BaseLLMProvider",
    # Models
    "LLMMessage",
    "LLMRequest",
    "LLMResponse",
    "LLMUsage",
    # Factory
    "LLMProviderFactory",
    # Providers
    "OpenAIProvider",
    "LocalProvider",
    # Chains
    "SQLQueryChain",
]
