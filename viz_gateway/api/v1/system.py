"""System endpoints — health check."""

from fastapi import APIRouter, Request

from viz_gateway.core.config import settings

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/health")
async def health_check(request: Request):
    """Basic liveness probe."""
    endpoint = getattr(request.app.state, "rendering_endpoint", None)
    return {
        "status": "ok",
        "app": settings.APP_NAME,
        "ready": getattr(request.app.state, "orchestrator", None) is not None,
        "rendering_service": endpoint.name if endpoint else None,
    }
