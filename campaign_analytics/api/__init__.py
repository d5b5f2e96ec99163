"""
API package initialization.

This package contains the FastAPI router modules:
- metrics: Campaign, sales and insight aggregation endpoints
"""

from fastapi import APIRouter

from campaign_analytics.api.metrics import router as metrics_router

# Create main API router
api_router = APIRouter()

api_router.include_router(metrics_router, prefix="/metrics", tags=["metrics"])

__all__ = [
    "api_router",
    "metrics_router",
]
