"""Health API routes."""

from pydantic import BaseModel
from fastapi import APIRouter

from ...app import IApplication


class HealthResponse(BaseModel):
    """Response model for health."""

    status: str
    agent: str
    streaming: bool


def create_health_router(app: IApplication) -> APIRouter:
    """Create health router."""
    router = APIRouter(prefix="/api", tags=["health"])

    @router.get("/health", response_model=HealthResponse)
    async def health() -> dict:
        """Report service status and the streaming switch."""
        return {
            "status": "ok",
            "agent": app.config.name,
            "streaming": app.is_streaming_enabled(),
        }

    return router
