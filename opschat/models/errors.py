"""
Assistant Errors

Exception hierarchy for the conversational query engine. Every error names the
component that raised it and whether the request could reasonably be retried.
"""

from typing import Any


class AssistantError(Exception):
    """
    Base exception for assistant component failures.

    Attributes:
        component: Name of the component that raised the error
        message: Error description
        recoverable: Whether the caller can retry or continue
        context: Additional context for debugging
    """

    def __init__(
        self,
        component: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        self.component = component
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/API responses."""
        return {
            "component": self.component,
            "message": self.message,
            "recoverable": self.recoverable,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class LLMError(AssistantError):
    """Error during a language model call (usually recoverable with retry)."""

    def __init__(self, component: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(component, message, recoverable=True, context=context)


class SQLGenerationError(AssistantError):
    """The model produced no usable statement."""

    def __init__(
        self,
        component: str,
        message: str,
        recoverable: bool = True,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(component, message, recoverable=recoverable, context=context)


class ResultDecodeError(AssistantError):
    """Rows returned by the database could not be converted to JSON-safe records."""

    def __init__(self, component: str, message: str, context: dict[str, Any] | None = None):
        super().__init__(component, message, recoverable=True, context=context)


class SQLPipelineError(AssistantError):
    """Generated SQL still failed after the corrective retry."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__("SQLPipeline", f"Query failed: {message}", recoverable=False, context=context)


class StoreUnavailableError(AssistantError):
    """The business database never became ready."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__("StoreReadiness", message, recoverable=False, context=context)
