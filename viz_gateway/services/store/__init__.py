"""
Relational persistence for visualizations and dashboards.

Modules:
  base       : VisualizationStore contract + DashboardShell / VisualizationGroup.
  lookup     : Pure functions building the conjunctive lookup filter.
  sql_store  : SQLAlchemy implementation (grouped joins, bulk upsert/delete).
"""

from viz_gateway.services.store.base import (
    DashboardShell,
    VisualizationGroup,
    VisualizationStore,
)
from viz_gateway.services.store.sql_store import SQLVisualizationStore

__all__ = [
    "DashboardShell",
    "VisualizationGroup",
    "VisualizationStore",
    "SQLVisualizationStore",
]
