"""
Main FastAPI application.
"""
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import get_session_manager, seed_stores
from app.api.v1.api import api_router
from app.core.analytics import AnalyticsTracker
from app.core.config import settings
from app.core.error_responses import ErrorMessages
from app.core.logging_config import setup_logging
from app.middleware import RequestLoggingMiddleware

# Initialize logging configuration at startup
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan event handler.

    - On startup: logs the active configuration
    - On startup: loads SEED_DATA_PATH into the in-memory stores, if set
    - On shutdown: cancels the countdown of every live test session
    """
    logger.info(
        f"Starting {settings.APP_NAME} {settings.APP_VERSION} (env={settings.ENV})"
    )
    if settings.SEED_DATA_PATH:
        seed_stores(settings.SEED_DATA_PATH)

    yield

    manager = app.dependency_overrides.get(get_session_manager, get_session_manager)()
    active = len(manager.active_sessions())
    if active > 0:
        logger.info(
            f"Application shutting down with {active} active test sessions - "
            "cancelling timers..."
        )
    else:
        logger.info("Application shutting down - no active test sessions")
    await manager.shutdown()


# OpenAPI tags metadata
tags_metadata = [
    {
        "name": "health",
        "description": "Health check endpoints for monitoring application status",
    },
    {
        "name": "test",
        "description": (
            "Timed test sessions: navigation, answers, submission and results"
        ),
    },
    {
        "name": "reports",
        "description": (
            "Subject, topic and subtopic performance analysis and CSV export"
        ),
    },
]


def create_application() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        lifespan=lifespan,
        description=(
            f"**{settings.APP_NAME}** - timed academic tests and performance "
            "analytics.\n\n"
            "This API provides:\n"
            "* Timed test sessions with a question palette and auto-submit\n"
            "* Scoring with per-test marks and negative marking\n"
            "* Subject, topic and subtopic performance reports\n"
            "* Attempt history and CSV report export"
        ),
        docs_url=f"{settings.API_V1_PREFIX}/docs",
        redoc_url=f"{settings.API_V1_PREFIX}/redoc",
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        openapi_tags=tags_metadata,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    # Configure Request Logging
    app.add_middleware(RequestLoggingMiddleware)

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    # Exception handlers for error tracking
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """
        Handle HTTP exceptions and track them in analytics.
        """
        if exc.status_code >= 400:
            AnalyticsTracker.track_api_error(
                method=request.method,
                path=str(request.url.path),
                error_type="HTTPException",
                error_message=str(exc.detail),
            )

        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        """
        Handle request validation errors.
        """
        errors = [
            {
                "loc": list(error.get("loc", [])),
                "msg": str(error.get("msg", "")),
                "type": str(error.get("type", "")),
            }
            for error in exc.errors()
        ]

        AnalyticsTracker.track_api_error(
            method=request.method,
            path=str(request.url.path),
            error_type="ValidationError",
            error_message=str(errors),
        )

        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"detail": errors},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """
        Handle unexpected exceptions and track them.

        Generates a unique error_id (UUID) for each exception so support can
        trace it in the logs. The error_id is included in the response body
        and logged with the full exception.
        """
        error_id = str(uuid.uuid4())

        logger.exception(
            f"Unhandled exception [error_id={error_id}]: {exc}",
            extra={"error_id": error_id},
        )

        AnalyticsTracker.track_api_error(
            method=request.method,
            path=str(request.url.path),
            error_type=exc.__class__.__name__,
            error_message=str(exc),
        )

        # Don't leak internal details
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": ErrorMessages.INTERNAL_ERROR,
                "error_id": error_id,
            },
        )

    @app.get("/")
    async def root():
        """
        Root endpoint.
        """
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": f"{settings.API_V1_PREFIX}/docs",
        }

    return app


app = create_application()
