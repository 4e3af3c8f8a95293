"""
Unit tests for LLM providers and the provider factory.

Providers are exercised against mocked transports; no network calls are made.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest

from opschat.config import LLMSettings
from opschat.llm.factory import LLMProviderFactory
from opschat.llm.local import LocalProvider
from opschat.llm.models import LLMRequest
from opschat.llm.openai import OpenAIProvider

TEST_KEY = "sk-test-key-1234567890-abcdefghijklmnop"


class TestLLMProviderFactory:
    """Test provider creation from settings."""

    def test_creates_openai_provider(self):
        config = LLMSettings(default_provider="openai", openai_api_key=TEST_KEY, openai_model="gpt-4o")

        provider = LLMProviderFactory.create_default_provider(config)

        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o"
        assert provider.temperature == 0.0

    def test_creates_local_provider(self):
        config = LLMSettings(default_provider="local", local_model="qwen2.5:7b")

        provider = LLMProviderFactory.create_default_provider(config)

        assert isinstance(provider, LocalProvider)
        assert provider.model == "qwen2.5:7b"

    def test_unknown_provider(self):
        config = LLMSettings(openai_api_key=TEST_KEY)

        with pytest.raises(ValueError, match="Unknown provider type"):
            LLMProviderFactory.create_provider("anthropic", config)

    def test_openai_requires_key(self, monkeypatch):
        monkeypatch.delenv("LLM_OPENAI_API_KEY", raising=False)

        with pytest.raises(ValueError, match="API key required"):
            LLMSettings(default_provider="openai", _env_file=None)


class TestOpenAIProvider:
    """Test the OpenAI chat completion mapping."""

    @pytest.mark.asyncio
    async def test_generate(self):
        provider = OpenAIProvider(api_key=TEST_KEY, model="gpt-4o", max_tokens=500)
        completion = SimpleNamespace(
            id="chatcmpl-1",
            created=1700000000,
            model="gpt-4o-2024-08-06",
            choices=[
                SimpleNamespace(
                    message=SimpleNamespace(content='SELECT COUNT(*) FROM "Job"'),
                    finish_reason="stop",
                )
            ],
            usage=SimpleNamespace(prompt_tokens=120, completion_tokens=8, total_tokens=128),
        )
        provider.client.chat.completions.create = AsyncMock(return_value=completion)

        response = await provider.generate(LLMRequest.from_prompt("How many jobs?"))

        assert response.content == 'SELECT COUNT(*) FROM "Job"'
        assert response.usage.total_tokens == 128
        assert response.provider == "openai"
        kwargs = provider.client.chat.completions.create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 500
        assert kwargs["messages"] == [{"role": "user", "content": "How many jobs?"}]


class TestLocalProvider:
    """Test the local model server client."""

    @pytest.mark.asyncio
    async def test_ollama_endpoint(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/chat"
            return httpx.Response(
                200,
                json={
                    "model": "llama3.1:8b",
                    "message": {"role": "assistant", "content": "Hello!"},
                    "prompt_eval_count": 10,
                    "eval_count": 3,
                },
            )

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = LocalProvider(base_url="http://models.local/", client=client)

        response = await provider.generate(LLMRequest.from_prompt("hi"))

        assert response.content == "Hello!"
        assert response.usage.total_tokens == 13
        await provider.close()

    @pytest.mark.asyncio
    async def test_falls_back_to_openai_compatible_endpoint(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/chat":
                return httpx.Response(404)
            return httpx.Response(
                200,
                json={
                    "model": "mistral",
                    "choices": [{"message": {"content": "SELECT 1"}}],
                    "usage": {"prompt_tokens": 4, "completion_tokens": 2},
                },
            )

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = LocalProvider(base_url="http://models.local", client=client)

        response = await provider.generate(LLMRequest.from_prompt("sql please"))

        assert response.content == "SELECT 1"
        assert response.model == "mistral"
        assert response.usage.total_tokens == 6
