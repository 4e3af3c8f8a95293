"""Response synthesis agent: narrate query results in the context of the conversation."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence

from opschat.agents.base import BaseAgent
from opschat.models.chat import QueryResult, QueryUnderstanding, Turn
from opschat.models.errors import LLMError

logger = logging.getLogger(__name__)

FALLBACK_GREETING = (
    "Hello! I'm your operations assistant. I can help you find information about "
    "customers, jobs and bookings. What would you like to know?"
)


class ResponseSynthesisAgent(BaseAgent):
    """Generate natural-language answers and small-talk replies."""

    def __init__(self, llm_provider=None, prompts=None) -> None:
        super().__init__(name="ResponseSynthesisAgent", llm_provider=llm_provider, prompts=prompts)

    async def execute(
        self,
        *,
        query: str,
        understanding: QueryUnderstanding,
        result: QueryResult,
        history: Sequence[Turn] = (),
    ) -> str:
        prompt = self.prompts.render(
            "agents/response_synthesis.md",
            intent=understanding.intent,
            entities=understanding.entities,
            timeframe=understanding.timeframe,
            row_count=result.row_count,
            rows_json=json.dumps(result.rows, indent=2, default=str),
            history=list(history),
            question=query,
        )
        return await self._complete(prompt)

    async def small_talk(self, query: str) -> str:
        """Friendly reply to a greeting; falls back to a canned greeting on model failure."""
        prompt = self.prompts.render("agents/small_talk.md", query=query)
        try:
            return await self._complete(prompt)
        except LLMError as e:
            logger.warning(f"[{self.name}] Small talk failed, using canned greeting: {e}")
            return FALLBACK_GREETING
