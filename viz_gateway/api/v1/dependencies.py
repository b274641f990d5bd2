"""
FastAPI dependencies — request context shared by the v1 endpoints.

Single Responsibility: provide reusable ``Depends()`` callables for
organization resolution and access to the application-owned
orchestrator.

Usage in endpoints::

    @router.delete("/{slug}")
    async def delete_visualization(
        slug: str,
        ctx: OrganizationContext = Depends(require_organization),
        orchestrator: VisualizationOrchestrator = Depends(get_orchestrator),
    ):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import HTTPException, Request

from viz_gateway.core.config import settings
from viz_gateway.services.orchestrator import VisualizationOrchestrator


@dataclass
class OrganizationContext:
    """Validated request context — guaranteed non-empty organization_id."""
    organization_id: str


def require_organization(request: Request) -> OrganizationContext:
    """Dependency: read the organization from the configured header."""
    header = settings.ORGANIZATION_HEADER
    organization_id = request.headers.get(header, "").strip()
    if not organization_id:
        raise HTTPException(status_code=401, detail=f"Missing '{header}' header")
    return OrganizationContext(organization_id=organization_id)


def get_orchestrator(request: Request) -> VisualizationOrchestrator:
    """Dependency: the orchestrator built during application startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    return orchestrator
