"""
FollowUpResolver: rewrite context-dependent questions as standalone ones.

"What about last week?" only makes sense next to the previous exchange, so it
is rewritten by the model before entering the SQL pipeline. The resolver never
fails a request: without enough history, without a follow-up signal or when
the model call fails, the question passes through unchanged.
"""

import logging
from collections.abc import Sequence

from opschat.agents.base import BaseAgent
from opschat.agents.classifier import FollowUpDetector, QueryClassifier
from opschat.models.chat import Turn
from opschat.models.errors import LLMError

logger = logging.getLogger(__name__)

MIN_HISTORY_TURNS = 2


class FollowUpResolver(BaseAgent):
    """Resolve follow-up questions against recent conversation turns."""

    def __init__(
        self,
        llm_provider=None,
        detector: QueryClassifier | None = None,
        context_turns: int = 4,
        prompts=None,
    ):
        super().__init__(name="FollowUpResolver", llm_provider=llm_provider, prompts=prompts)
        self.detector = detector or FollowUpDetector()
        self.context_turns = context_turns

    async def resolve(self, query: str, history: Sequence[Turn]) -> str:
        if len(history) < MIN_HISTORY_TURNS:
            return query
        if not self.detector.matches(query):
            return query

        recent_context = "\n".join(turn.content for turn in history[-self.context_turns :])
        prompt = self.prompts.render(
            "agents/followup_rewrite.md",
            recent_context=recent_context,
            query=query,
        )
        try:
            rewritten = (await self._complete(prompt)).strip()
        except LLMError as e:
            logger.info(f"[{self.name}] Rewrite failed, keeping original question: {e}")
            return query

        if not rewritten:
            return query

        logger.info(
            f"[{self.name}] Rewrote follow-up question",
            extra={"agent": self.name, "original": query[:100], "rewritten": rewritten[:100]},
        )
        return rewritten
