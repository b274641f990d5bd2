"""
ResponseAssembler — Shapes visualizations into the API response form.

Output schema::

    {
        "visualization": {
            "slug": str,
            "name": str,
            "organization_id": str,
            "tags": {...},
        },
        "dashboards": [
            {"id": str, "name": str, "rendered_template": str, "slug": str},
            ...
        ],
    }

The store primary key of a visualization is never exposed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from viz_gateway.models.visualization_models import Dashboard, Visualization
from viz_gateway.services.store.base import VisualizationGroup


class ResponseAssembler:
    """Stateless helper that builds the visualization JSON response."""

    @staticmethod
    def visualization_with_dashboards(
        visualization: Optional[Visualization],
        dashboards: Sequence[Dashboard],
    ) -> Dict[str, Any]:
        return {
            "visualization": _visualization_entry(visualization),
            "dashboards": [_dashboard_entry(d) for d in dashboards],
        }

    @staticmethod
    def grouped(groups: Sequence[VisualizationGroup]) -> List[Dict[str, Any]]:
        return [
            ResponseAssembler.visualization_with_dashboards(
                group.visualization, group.dashboards,
            )
            for group in groups
        ]


def _visualization_entry(visualization: Optional[Visualization]) -> Optional[Dict[str, Any]]:
    if visualization is None:
        return None
    return {
        "slug": visualization.slug,
        "name": visualization.name,
        "organization_id": visualization.organization_id,
        "tags": dict(visualization.tags or {}),
    }


def _dashboard_entry(dashboard: Dashboard) -> Dict[str, Any]:
    return {
        "id": dashboard.id,
        "name": dashboard.name,
        "rendered_template": dashboard.rendered_template,
        "slug": dashboard.slug or "",
    }
