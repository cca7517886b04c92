"""
Health check and status endpoints.
"""
from fastapi import APIRouter, Depends

from app.api.deps import get_session_manager
from app.core import settings
from app.core.datetime_utils import utc_now
from app.core.session import TestSessionManager

router = APIRouter()


@router.get("/health")
async def health_check(
    manager: TestSessionManager = Depends(get_session_manager),
):
    """
    Health check endpoint.
    Returns basic health status of the API and the number of live sessions.
    """
    return {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.ENV,
        "active_sessions": len(manager.active_sessions()),
    }


@router.get("/ping")
async def ping():
    """
    Simple ping endpoint for basic connectivity testing.
    """
    return {"message": "pong"}
