"""
Orchestrator package — Visualization provisioning workflows.

Modules:
  context    — DashboardSpec request container
  unwind     — Compensation planning after a failed publish
  assembler  — Response JSON assembly
  pipeline   — VisualizationOrchestrator coordinator

Usage::

    from viz_gateway.services.orchestrator import VisualizationOrchestrator

    orchestrator = VisualizationOrchestrator(store, publisher)
    visualization, dashboards = await orchestrator.delete("acme", slug)
"""

from viz_gateway.services.orchestrator.assembler import ResponseAssembler
from viz_gateway.services.orchestrator.context import DashboardSpec
from viz_gateway.services.orchestrator.pipeline import VisualizationOrchestrator
from viz_gateway.services.orchestrator.unwind import UnwindPlan, unpublish_uploaded

__all__ = [
    "DashboardSpec",
    "ResponseAssembler",
    "UnwindPlan",
    "VisualizationOrchestrator",
    "unpublish_uploaded",
]
