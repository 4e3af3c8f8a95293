"""
Query classifiers: cheap pattern checks run before any model call.

Both classifiers satisfy the ``QueryClassifier`` protocol, so a model-backed
classifier can be swapped in without changing the orchestrator.
"""

import re
from typing import Protocol, runtime_checkable


@runtime_checkable
class QueryClassifier(Protocol):
    """Decides whether a query belongs to a category."""

    def matches(self, query: str) -> bool: ...


class PatternClassifier:
    """Matches when any of its regular expressions is found in the trimmed query."""

    patterns: tuple[str, ...] = ()

    def __init__(self, patterns: tuple[str, ...] | None = None):
        self._compiled = [
            re.compile(pattern, re.IGNORECASE) for pattern in (patterns or self.patterns)
        ]

    def matches(self, query: str) -> bool:
        text = (query or "").strip()
        return any(pattern.search(text) for pattern in self._compiled)


class ConversationalGate(PatternClassifier):
    """Greetings, thanks and farewells that need no database access."""

    patterns = (
        r"^(hi|hello|hey|greetings)\b",
        r"^(how are you|what's up|sup)\b",
        r"^(thanks|thank you|thx)\b",
        r"^(bye|goodbye|see you)\b",
    )


class FollowUpDetector(PatternClassifier):
    """Questions that lean on earlier turns for their meaning."""

    patterns = (
        r"^(what about|how about|and|also|more|show me more)\b",
        r"^(who|when|where|why|how)\s",
        r"\b(them|those|that|it|this)\b",
    )
