"""
Health Check Routes

FastAPI endpoints for service health and readiness checks.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from opschat.models.api import HealthResponse, ReadinessResponse

logger = logging.getLogger(__name__)

router = APIRouter()

API_VERSION = "0.1.0"


@router.get("/health", response_model=HealthResponse, status_code=status.HTTP_200_OK)
async def health() -> HealthResponse:
    """
    Basic liveness check.

    Returns 200 OK if the service is running.
    """
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=datetime.now(UTC).isoformat(),
    )


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness() -> JSONResponse:
    """
    Readiness check for service dependencies.

    Checks:
    - Database initialization finished successfully
    - Orchestrator is initialized

    Returns:
        200 OK if all checks pass
        503 Service Unavailable if any check fails
    """
    from opschat.api.main import app_state

    store_readiness = app_state["readiness"]
    checks = {
        "database": store_readiness is not None and store_readiness.state == "connected",
        "assistant": app_state["orchestrator"] is not None,
    }
    all_ready = all(checks.values())
    if not all_ready:
        logger.warning(f"Readiness check failed: {checks}")

    body = ReadinessResponse(
        status="ready" if all_ready else "not_ready",
        version=API_VERSION,
        timestamp=datetime.now(UTC).isoformat(),
        checks=checks,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if all_ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(),
    )
