"""
Health Check Endpoints

Provides health check endpoints for monitoring and orchestration.
"""

from datetime import datetime, timezone
from fastapi import APIRouter, status
from pydantic import BaseModel

from stockwatch import __version__
from stockwatch.config import settings

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    environment: str
    version: str


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health Check",
    description="Returns the health status of the API service"
)
async def health_check():
    """
    Health check endpoint.

    Does not probe upstream providers; use /stocks/providers/status for that.
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        environment=settings.ENV,
        version=__version__
    )


@router.get("/ping", summary="Ping")
async def ping():
    """Simple liveness check."""
    return {"message": "pong"}
