"""
Conversation Models

Pydantic models for session turns and the outcomes of a chat request.
"""

import time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["user", "assistant"]
Intent = Literal["count", "list", "find", "compare", "analyze"]
OutcomeType = Literal["conversational", "database_query", "error"]


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class Turn(BaseModel):
    """Single message in a session's conversation log."""

    role: Role
    content: str
    timestamp: int = Field(default_factory=now_ms, description="Epoch milliseconds")

    model_config = ConfigDict(frozen=True)


class QueryUnderstanding(BaseModel):
    """Intent, entities and timeframe extracted from a question."""

    intent: Intent = "find"
    entities: list[str] = Field(default_factory=list)
    timeframe: str | None = None

    @classmethod
    def fallback(cls) -> "QueryUnderstanding":
        return cls(intent="find", entities=[])


class QueryResult(BaseModel):
    """Rows produced by the SQL pipeline."""

    sql: str = Field(..., description="Statement that actually ran")
    rows: list[dict[str, Any]] = Field(default_factory=list, description="JSON-safe records")
    row_count: int = Field(default=0, ge=0)
    attempts: int = Field(default=1, ge=1, le=2, description="1 = first try, 2 = corrected")


class ChatOutcome(BaseModel):
    """Structured result of one chat request."""

    answer: str
    type: OutcomeType
    data: list[dict[str, Any]] | None = None
    row_count: int | None = Field(default=None, serialization_alias="rowCount")
    intent: Intent | None = None
    entities: list[str] | None = None
    error: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Camel-cased dict without unset fields, as returned over HTTP."""
        return self.model_dump(by_alias=True, exclude_none=True)
