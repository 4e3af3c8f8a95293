"""
Local LLM Provider

Implementation of BaseLLMProvider for local model servers.
Supports Ollama and any OpenAI-compatible endpoint (vLLM, llama.cpp server).
"""

import logging

import httpx

from opschat.llm.base import BaseLLMProvider
from opschat.llm.models import LLMRequest, LLMResponse, LLMUsage

logger = logging.getLogger(__name__)


class LocalProvider(BaseLLMProvider):
    """
    Local LLM provider implementation.

    Tries the Ollama chat endpoint first and falls back to the
    OpenAI-compatible /v1/chat/completions endpoint.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        model: str = "llama3.1:8b",
        temperature: float = 0.0,
        max_tokens: int = 2000,
        timeout: int = 60,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(
            provider_name="local",
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=timeout,
        )

        self.base_url = base_url.rstrip("/")
        self.model = model
        self.client = client or httpx.AsyncClient(timeout=float(timeout))

        logger.info(
            f"Local provider initialized: {base_url} with model: {model}",
            extra={"base_url": base_url, "model": model},
        )

    async def generate(self, request: LLMRequest) -> LLMResponse:
        """Generate completion using the local model server."""
        request = self._apply_defaults(request)
        self._log_request(request)

        payload = {
            "model": request.model or self.model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in request.messages],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
            "stream": False,
        }

        try:
            response = await self._call_ollama(payload)
        except httpx.HTTPError as e:
            logger.debug(f"Ollama endpoint unavailable, trying OpenAI-compatible API: {e}")
            response = await self._call_openai_compatible(payload)

        content = response.get("message", {}).get("content", "") or (
            response.get("choices") or [{}]
        )[0].get("message", {}).get("content", "")
        prompt_tokens = response.get("prompt_eval_count", 0) or response.get("usage", {}).get(
            "prompt_tokens", 0
        )
        completion_tokens = response.get("eval_count", 0) or response.get("usage", {}).get(
            "completion_tokens", 0
        )

        llm_response = LLMResponse(
            content=content,
            model=response.get("model", self.model),
            usage=LLMUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason="stop",
            provider="local",
            metadata={"base_url": self.base_url},
        )

        self._log_response(llm_response)
        return llm_response

    async def close(self) -> None:
        await self.client.aclose()

    async def _call_ollama(self, payload: dict) -> dict:
        response = await self.client.post(f"{self.base_url}/api/chat", json=payload)
        response.raise_for_status()
        return response.json()

    async def _call_openai_compatible(self, payload: dict) -> dict:
        response = await self.client.post(f"{self.base_url}/v1/chat/completions", json=payload)
        response.raise_for_status()
        return response.json()
