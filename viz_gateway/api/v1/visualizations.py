"""
Visualization API Endpoints.

  GET    /api/v1/visualizations          → Query (slug, name, tags filters)
  POST   /api/v1/visualizations          → Create (render, persist, publish)
  DELETE /api/v1/visualizations/{slug}   → Delete (unpublish, remove rows)

All endpoints are scoped to the organization of the request.
Errors that leave residual state (``ClientError``) answer 500 with the
surviving visualization and dashboards in ``detail``.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from viz_gateway.api.v1.dependencies import (
    OrganizationContext,
    get_orchestrator,
    require_organization,
)
from viz_gateway.core.errors import (
    ClientError,
    GatewayError,
    PublishError,
    StoreError,
    UserDataError,
)
from viz_gateway.services.orchestrator import (
    DashboardSpec,
    ResponseAssembler,
    VisualizationOrchestrator,
)

router = APIRouter(prefix="/visualizations", tags=["visualizations"])


# ── Pydantic request/response models ────────────────────────────

class DashboardCreateRequest(BaseModel):
    """One dashboard inside a create request."""
    name: str = Field(..., min_length=1)
    template_body: str = Field(..., description="Jinja template of the dashboard JSON.")
    template_parameters: Dict[str, Any] = Field(
        default_factory=dict,
        description="Values referenced by template_body.",
    )


class VisualizationCreateRequest(BaseModel):
    """Request body for POST /visualizations."""
    name: str = Field(..., min_length=1)
    tags: Dict[str, Any] = Field(default_factory=dict)
    dashboards: List[DashboardCreateRequest] = Field(..., min_length=1)


class VisualizationEntry(BaseModel):
    slug: str
    name: str
    organization_id: str
    tags: Dict[str, Any] = {}


class DashboardEntry(BaseModel):
    id: str
    name: str
    rendered_template: str
    slug: str = ""


class VisualizationWithDashboards(BaseModel):
    """Visualization together with its dashboards."""
    visualization: VisualizationEntry
    dashboards: List[DashboardEntry]


# ── Helpers ──────────────────────────────────────────────────────

def _parse_tags(raw: Optional[str]) -> Dict[str, Any]:
    """Decode the ``tags`` query parameter (a JSON object)."""
    if not raw:
        return {}
    try:
        tags = json.loads(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="tags must be a JSON object")
    if not isinstance(tags, dict):
        raise HTTPException(status_code=400, detail="tags must be a JSON object")
    return tags


def _raise_http(exc: GatewayError) -> NoReturn:
    """Map a gateway error onto an HTTP error response."""
    if isinstance(exc, ClientError):
        raise HTTPException(
            status_code=500,
            detail={
                "error": exc.message,
                **ResponseAssembler.visualization_with_dashboards(
                    exc.visualization, exc.dashboards,
                ),
            },
        )
    if isinstance(exc, UserDataError):
        raise HTTPException(
            status_code=404 if exc.not_found else 400, detail=exc.message,
        )
    if isinstance(exc, PublishError):
        raise HTTPException(status_code=502, detail=exc.message)
    if isinstance(exc, StoreError):
        raise HTTPException(status_code=500, detail=exc.message)
    raise HTTPException(status_code=500, detail=exc.message)


# ── Endpoints ────────────────────────────────────────────────────

@router.get("", response_model=List[VisualizationWithDashboards])
async def query_visualizations(
    slug: Optional[str] = Query(None),
    name: Optional[str] = Query(None),
    tags: Optional[str] = Query(None, description="JSON object of tag equality filters."),
    ctx: OrganizationContext = Depends(require_organization),
    orchestrator: VisualizationOrchestrator = Depends(get_orchestrator),
):
    """Visualizations of the caller's organization matching every filter."""
    tag_filters = _parse_tags(tags)
    try:
        groups = await orchestrator.query(
            slug=slug or "",
            name=name or "",
            organization_id=ctx.organization_id,
            tags=tag_filters,
        )
    except GatewayError as exc:
        _raise_http(exc)
    return ResponseAssembler.grouped(groups)


@router.post("", response_model=VisualizationWithDashboards, status_code=201)
async def create_visualization(
    req: VisualizationCreateRequest,
    ctx: OrganizationContext = Depends(require_organization),
    orchestrator: VisualizationOrchestrator = Depends(get_orchestrator),
):
    """Render, persist and publish a new visualization."""
    specs = [
        DashboardSpec(
            name=d.name,
            template_body=d.template_body,
            template_parameters=d.template_parameters,
        )
        for d in req.dashboards
    ]
    try:
        visualization, dashboards = await orchestrator.create(
            req.name, ctx.organization_id, req.tags, specs,
        )
    except GatewayError as exc:
        _raise_http(exc)
    return ResponseAssembler.visualization_with_dashboards(visualization, dashboards)


@router.delete("/{slug}", response_model=VisualizationWithDashboards)
async def delete_visualization(
    slug: str,
    ctx: OrganizationContext = Depends(require_organization),
    orchestrator: VisualizationOrchestrator = Depends(get_orchestrator),
):
    """Remove a visualization and all of its dashboards."""
    try:
        visualization, dashboards = await orchestrator.delete(
            ctx.organization_id, slug,
        )
    except GatewayError as exc:
        _raise_http(exc)
    return ResponseAssembler.visualization_with_dashboards(visualization, dashboards)
