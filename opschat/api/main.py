"""
FastAPI Application

Main FastAPI application for OpsChat with:
- Lifespan management for the database connector, LLM provider and orchestrator
- One-time database initialization started at startup and awaited by requests
- CORS middleware for the frontend
- Exception handlers for connector, assistant and records errors

Usage:
    uvicorn opschat.api.main:app --reload --port 3000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from opschat.api.routes import assistant, health, records
from opschat.config import get_settings
from opschat.connectors.base import ConnectionError as ConnectorConnectionError
from opschat.connectors.base import QueryError
from opschat.connectors.postgres import PostgresConnector
from opschat.llm.factory import LLMProviderFactory
from opschat.models.api import ApiResponse
from opschat.models.errors import AssistantError
from opschat.pipeline.orchestrator import ChatOrchestrator
from opschat.pipeline.readiness import StoreReadiness
from opschat.records.errors import RecordError
from opschat.records.service import RecordsService

logger = logging.getLogger(__name__)

# Global state for the assistant and its collaborators
app_state = {
    "connector": None,
    "llm": None,
    "orchestrator": None,
    "records": None,
    "readiness": None,
}


def build_readiness(connector: PostgresConnector, records_service: RecordsService) -> StoreReadiness:
    """Readiness task that connects to the database and creates the business tables."""

    async def initialize() -> None:
        await connector.connect()
        await records_service.ensure_schema()

    return StoreReadiness(initialize)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Initializes:
    - Database connector (PostgreSQL), connected in the background
    - LLM provider
    - Records service and chat orchestrator
    """
    config = get_settings()
    logger.info(f"Starting {config.app_name} API server...")

    try:
        if config.database.url:
            connector = PostgresConnector.from_url(
                str(config.database.url),
                pool_size=config.database.pool_size,
                timeout=config.database.timeout,
                schema_name=config.database.schema_name,
            )
            app_state["connector"] = connector

            logger.info("Initializing LLM provider...")
            llm = LLMProviderFactory.create_default_provider(config.llm)
            app_state["llm"] = llm

            records_service = RecordsService(connector)
            readiness = build_readiness(connector, records_service)
            readiness.start()
            app_state["records"] = records_service
            app_state["readiness"] = readiness

            app_state["orchestrator"] = ChatOrchestrator(
                connector=connector,
                llm_provider=llm,
                readiness=readiness,
                settings=config.assistant,
            )
        else:
            logger.warning("DATABASE_URL not set; assistant and records endpoints disabled.")

        logger.info(f"{config.app_name} API server started successfully")

        yield  # Application runs here

    finally:
        logger.info(f"Shutting down {config.app_name} API server...")

        if app_state["readiness"]:
            await app_state["readiness"].cancel()

        if app_state["connector"]:
            try:
                await app_state["connector"].close()
                logger.info("Database connector closed")
            except Exception as e:
                logger.error(f"Error closing connector: {e}")

        if app_state["llm"]:
            try:
                await app_state["llm"].close()
            except Exception as e:
                logger.error(f"Error closing LLM provider: {e}")

        for key in app_state:
            app_state[key] = None

        logger.info(f"{config.app_name} API server shut down complete")


# Create FastAPI app
app = FastAPI(
    title="OpsChat API",
    description="Customers, jobs and bookings with a natural-language query assistant",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(RecordError)
async def record_error_handler(request: Request, exc: RecordError) -> JSONResponse:
    """Handle records errors with their mapped status code."""
    if exc.status_code >= 500:
        logger.error(f"Records error: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=ApiResponse.fail(exc.message))


@app.exception_handler(HTTPException)
async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP errors in the response envelope."""
    return JSONResponse(status_code=exc.status_code, content=ApiResponse.fail(str(exc.detail)))


@app.exception_handler(AssistantError)
async def assistant_error_handler(request: Request, exc: AssistantError) -> JSONResponse:
    """Handle assistant errors with context."""
    logger.error(
        f"Assistant error: {exc}",
        extra={"component": exc.component, "recoverable": exc.recoverable},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ApiResponse.fail(exc.message),
    )


@app.exception_handler(ConnectorConnectionError)
async def connection_error_handler(request: Request, exc: ConnectorConnectionError) -> JSONResponse:
    """Handle database connection errors."""
    logger.error(f"Database connection error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ApiResponse.fail("Database connection failed. Please try again later."),
    )


@app.exception_handler(QueryError)
async def query_error_handler(request: Request, exc: QueryError) -> JSONResponse:
    """Handle query execution errors."""
    logger.error(f"Query execution error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ApiResponse.fail("Database error"),
    )


# Include routers
app.include_router(health.router, prefix="/api", tags=["health"])
app.include_router(assistant.router, prefix="/api/ai", tags=["assistant"])
app.include_router(records.router, prefix="/api", tags=["records"])


# Root endpoint
@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with API information."""
    return {
        "name": "OpsChat API",
        "version": "0.1.0",
        "description": "Customers, jobs and bookings with a natural-language query assistant",
        "docs": "/docs",
    }


def get_orchestrator() -> ChatOrchestrator:
    """Get the initialized orchestrator instance."""
    if app_state["orchestrator"] is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Assistant not initialized",
        )
    return app_state["orchestrator"]


async def get_records_service() -> RecordsService:
    """Get the records service once the database is ready."""
    if app_state["records"] is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not configured",
        )
    if app_state["readiness"] is not None:
        try:
            await app_state["readiness"].wait()
        except AssistantError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail=exc.message,
            ) from exc
    return app_state["records"]
