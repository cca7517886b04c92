"""
API v1 router combining all v1 endpoints.
"""
from fastapi import APIRouter
from app.api.v1 import health, reports, test

api_router = APIRouter()

# Include all v1 routers
api_router.include_router(health.router, tags=["health"])
api_router.include_router(test.router, prefix="/test", tags=["test"])
api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
