"""
VisualizationStore — Contract for the relational side of a visualization.

Implementations must make ``create_with_dashboards`` atomic and must
perform the bulk operations in a single statement each, so callers can
batch any number of dashboards in one round trip.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from viz_gateway.models.visualization_models import Dashboard, Visualization


@dataclass(frozen=True)
class DashboardShell:
    """Dashboard row to be inserted before anything is published."""
    name: str
    rendered_template: str


@dataclass
class VisualizationGroup:
    """One visualization together with the dashboards it owns."""
    visualization: Visualization
    dashboards: List[Dashboard] = field(default_factory=list)


class VisualizationStore(ABC):
    """Abstract relational store used by the orchestrator."""

    @abstractmethod
    async def query(
        self,
        slug: str = "",
        name: str = "",
        organization_id: str = "",
        tags: Optional[Mapping[str, Any]] = None,
    ) -> List[VisualizationGroup]:
        """
        Conjunctive lookup over every non-empty argument, inner-joined
        with dashboards.  Visualizations without dashboards never appear.
        """

    @abstractmethod
    async def get_by_slug(
        self, slug: str, organization_id: str,
    ) -> Tuple[Optional[Visualization], List[Dashboard]]:
        """
        Single visualization plus its dashboards; ``(None, [])`` when absent.

        Both keys are required; an empty one raises :class:`UserDataError`.
        """

    @abstractmethod
    async def create_with_dashboards(
        self,
        name: str,
        organization_id: str,
        tags: Optional[Dict[str, Any]],
        dashboards: Sequence[DashboardShell],
    ) -> Tuple[Visualization, List[Dashboard]]:
        """Insert the visualization and all dashboard shells in one transaction."""

    @abstractmethod
    async def bulk_update_dashboards(self, dashboards: Sequence[Dashboard]) -> None:
        """Upsert a batch of dashboard rows. No-op when empty."""

    @abstractmethod
    async def bulk_delete_dashboards(self, dashboards: Sequence[Dashboard]) -> None:
        """Delete a batch of dashboard rows by id. No-op when empty."""

    @abstractmethod
    async def delete_visualization(self, visualization: Optional[Visualization]) -> None:
        """Delete one visualization row. No-op for ``None``."""
