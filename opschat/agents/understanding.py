"""
QueryUnderstandingAgent: intent, entity and timeframe extraction.

One model call per question. The result only enriches the answer prompt, so
any failure (model error, malformed or incomplete JSON, unknown intent)
degrades silently to ``{intent: find, entities: []}``.
"""

import json
import logging
import re

from pydantic import ValidationError

from opschat.agents.base import BaseAgent
from opschat.models.chat import QueryUnderstanding
from opschat.models.errors import LLMError

logger = logging.getLogger(__name__)

_JSON_FENCE = re.compile(r"```(?:json)?\n?|\n?```")


class QueryUnderstandingAgent(BaseAgent):
    """Classify what a question is asking for."""

    def __init__(self, llm_provider=None, prompts=None):
        super().__init__(name="QueryUnderstandingAgent", llm_provider=llm_provider, prompts=prompts)

    async def execute(self, query: str) -> QueryUnderstanding:
        """
        Analyze a question.

        Args:
            query: User question

        Returns:
            QueryUnderstanding, or the fallback when the model's answer is unusable
        """
        prompt = self.prompts.render("agents/understanding.md", query=query)
        try:
            content = await self._complete(prompt)
            understanding = self._parse(content)
        except (LLMError, TypeError, ValueError, ValidationError) as e:
            logger.info(
                f"[{self.name}] Falling back to default understanding: {e}",
                extra={"agent": self.name, "error_type": type(e).__name__},
            )
            return QueryUnderstanding.fallback()

        logger.info(
            f"[{self.name}] intent={understanding.intent}, entities={len(understanding.entities)}",
            extra={"agent": self.name, "intent": understanding.intent},
        )
        return understanding

    @staticmethod
    def _parse(content: str) -> QueryUnderstanding:
        """
        Parse the model's JSON answer.

        Raises:
            ValueError: If the payload is not a JSON object with intent and entities
        """
        cleaned = _JSON_FENCE.sub("", content).strip()
        data = json.loads(cleaned)
        if not isinstance(data, dict):
            raise ValueError("Understanding payload is not a JSON object")
        missing = {"intent", "entities"} - data.keys()
        if missing:
            raise ValueError(f"Understanding payload missing fields: {sorted(missing)}")

        timeframe = data.get("timeframe")
        return QueryUnderstanding(
            intent=data["intent"],
            entities=[str(entity) for entity in data["entities"] or []],
            timeframe=str(timeframe) if timeframe else None,
        )
