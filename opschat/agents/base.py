"""
Base Agent Framework

Shared plumbing for the assistant's model-backed components: provider
injection, prompt loading, call tracking and logging.

Usage:
    class MyAgent(BaseAgent):
        def __init__(self, llm_provider=None):
            super().__init__(name="MyAgent", llm_provider=llm_provider)

        async def execute(self, query: str) -> str:
            prompt = self.prompts.render("agents/my_prompt.md", query=query)
            return await self._complete(prompt)
"""

import logging
import time

from opschat.config import get_settings
from opschat.llm.base import BaseLLMProvider
from opschat.llm.factory import LLMProviderFactory
from opschat.llm.models import LLMRequest
from opschat.models.errors import LLMError
from opschat.prompts.loader import PromptLoader

logger = logging.getLogger(__name__)


class BaseAgent:
    """
    Base class for components that talk to the language model.

    Attributes:
        name: Identifier used in logs and errors
        llm: Provider used for completions
        prompts: Prompt template loader
        llm_calls: Number of completions requested so far
    """

    def __init__(
        self,
        name: str,
        llm_provider: BaseLLMProvider | None = None,
        prompts: PromptLoader | None = None,
    ):
        self.name = name
        if llm_provider is None:
            self.llm = LLMProviderFactory.create_default_provider(get_settings().llm)
        else:
            self.llm = llm_provider
        self.prompts = prompts or PromptLoader()
        self.llm_calls = 0

        logger.debug(f"Initialized {self.name}", extra={"agent": self.name})

    async def _complete(self, prompt: str, **request_options) -> str:
        """
        Send a single-prompt completion and return the raw text.

        Raises:
            LLMError: If the provider call fails
        """
        start_time = time.perf_counter()
        try:
            response = await self.llm.generate(LLMRequest.from_prompt(prompt, **request_options))
        except Exception as e:
            logger.warning(
                f"LLM call failed in {self.name}",
                extra={"agent": self.name, "error": str(e), "error_type": type(e).__name__},
            )
            raise LLMError(self.name, str(e), context={"error_type": type(e).__name__}) from e
        finally:
            self._track_llm_call((time.perf_counter() - start_time) * 1000)

        return response.content

    def _track_llm_call(self, duration_ms: float) -> None:
        self.llm_calls += 1
        logger.debug(
            f"LLM call tracked for {self.name}",
            extra={
                "agent": self.name,
                "total_llm_calls": self.llm_calls,
                "duration_ms": duration_ms,
            },
        )
