"""
Assistant Routes

FastAPI endpoints for the natural-language query assistant: chat, follow-up
chat, session history and status.
"""

import json
import logging
import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response

from opschat.models.api import ApiResponse, ChatRequest
from opschat.pipeline.orchestrator import ChatOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def orchestrator_dependency() -> ChatOrchestrator:
    from opschat.api.main import get_orchestrator

    return get_orchestrator()


def _require_query(chat_request: ChatRequest | None) -> tuple[str, str]:
    if chat_request is None or not (chat_request.query or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Query is required")
    return chat_request.query, chat_request.session_id or str(uuid.uuid4())


@router.get("/status")
async def assistant_status(
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
) -> dict[str, Any]:
    """Database readiness, LLM availability and number of live sessions."""
    return ApiResponse.ok(orchestrator.status())


@router.post("/chat")
async def chat(
    chat_request: ChatRequest | None = None,
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
) -> dict[str, Any]:
    """
    Answer a question within a session (a new session id is issued when omitted).

    Failures inside the assistant are reported as an ``error`` outcome with an
    apology, not as an HTTP error.
    """
    query, session_id = _require_query(chat_request)
    logger.info(f"Chat request received: {query[:100]}", extra={"session_id": session_id})

    outcome = await orchestrator.chat(query, session_id)
    return ApiResponse.ok({**outcome.to_payload(), "sessionId": session_id})


@router.post("/chat/followup")
async def chat_followup(
    chat_request: ChatRequest | None = None,
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
) -> dict[str, Any]:
    """Like /chat, but follow-up questions are first rewritten using recent turns."""
    query, session_id = _require_query(chat_request)
    logger.info(f"Follow-up chat request received: {query[:100]}", extra={"session_id": session_id})

    outcome = await orchestrator.chat_with_follow_up(query, session_id)
    return ApiResponse.ok({**outcome.to_payload(), "sessionId": session_id})


@router.get("/history/{session_id}")
async def get_history(
    session_id: str,
    limit: int | None = Query(None, description="Most recent turns to return (default 20)"),
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
) -> dict[str, Any]:
    turns = orchestrator.get_history(session_id, limit)
    return ApiResponse.ok([turn.model_dump() for turn in turns])


@router.get("/history/{session_id}/export")
async def export_history(
    session_id: str,
    format: str = Query("json", description="json or csv"),
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
):
    """Export the full retained history as JSON data or a CSV attachment."""
    if format not in ("json", "csv"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Format must be json or csv",
        )

    if format == "csv":
        return Response(
            content=orchestrator.export_history(session_id, "csv"),
            media_type="text/csv",
            headers={
                "Content-Disposition": f"attachment; filename=conversation-{session_id}.csv"
            },
        )

    return ApiResponse.ok(json.loads(orchestrator.export_history(session_id, "json")))


@router.delete("/history/{session_id}")
async def clear_history(
    session_id: str,
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
) -> dict[str, Any]:
    orchestrator.clear_history(session_id)
    return ApiResponse.ok(message="History cleared successfully")


@router.post("/clear-caches")
async def clear_caches(
    orchestrator: ChatOrchestrator = Depends(orchestrator_dependency),
) -> dict[str, Any]:
    orchestrator.clear_all_caches()
    return ApiResponse.ok(message="All caches cleared")
