"""
OpsChat Models Module

Pydantic models and exceptions shared across the assistant.

Available Models:
    Conversation Models:
        - Turn: One user or assistant message in a session
        - QueryUnderstanding: Intent/entities/timeframe of a question
        - QueryResult: Rows returned by the SQL pipeline
        - ChatOutcome: Structured result of a chat request

    Errors:
        - AssistantError: Base exception for component failures
        - LLMError, SQLGenerationError, ResultDecodeError, SQLPipelineError,
          StoreUnavailableError

    API Models:
        - ChatRequest, ApiResponse, HealthResponse, ReadinessResponse
"""

from opschat.models.api import ApiResponse, ChatRequest, HealthResponse, ReadinessResponse
from opschat.models.chat import ChatOutcome, QueryResult, QueryUnderstanding, Turn
from opschat.models.errors import (
    AssistantError,
    LLMError,
    ResultDecodeError,
    SQLGenerationError,
    SQLPipelineError,
    StoreUnavailableError,
)

__all__ = [
    "Turn",
    "QueryUnderstanding",
    "QueryResult",
    "ChatOutcome",
    "AssistantError",
    "LLMError",
    "ResultDecodeError",
    "SQLGenerationError",
    "SQLPipelineError",
    "StoreUnavailableError",
    "ChatRequest",
    "ApiResponse",
    "HealthResponse",
    "ReadinessResponse",
]
