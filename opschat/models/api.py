"""
API Request/Response Models

Pydantic models for FastAPI endpoints.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Request model for the chat endpoints."""

    query: str | None = Field(None, description="User's natural language question")
    session_id: str | None = Field(
        None,
        alias="sessionId",
        description="Conversation session; a fresh id is generated when omitted",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "query": "How many jobs are still pending?",
                "sessionId": "0b6f8b1e-3f0a-4c55-9a43-1d2f6c1d7e11",
            }
        },
    )


class ApiResponse(BaseModel):
    """Envelope shared by every JSON endpoint."""

    success: bool = Field(..., description="Whether the request succeeded")
    message: str | None = Field(None, description="Human-readable status message")
    data: Any | None = Field(None, description="Response payload")

    model_config = {
        "json_schema_extra": {
            "example": {
                "success": True,
                "message": "History cleared",
                "data": None,
            }
        }
    }

    @classmethod
    def ok(cls, data: Any = None, message: str | None = None) -> dict[str, Any]:
        return cls(success=True, data=data, message=message).model_dump(exclude_none=True)

    @classmethod
    def fail(cls, message: str) -> dict[str, Any]:
        return cls(success=False, message=message).model_dump(exclude_none=True)


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status: 'healthy' or 'unhealthy'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")


class ReadinessResponse(BaseModel):
    """Response model for readiness check endpoint."""

    status: str = Field(..., description="Readiness status: 'ready' or 'not_ready'")
    version: str = Field(..., description="API version")
    timestamp: str = Field(..., description="Current timestamp (ISO 8601)")
    checks: dict[str, bool] = Field(..., description="Individual readiness checks")
