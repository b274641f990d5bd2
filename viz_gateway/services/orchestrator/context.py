"""
Request-side data containers for the visualization workflows.

``DashboardSpec`` is what a caller supplies per dashboard; the
orchestrator renders it into a ``DashboardShell`` before anything is
persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict


@dataclass(frozen=True)
class DashboardSpec:
    """
    One dashboard to create.

    Attributes:
        name:                 Display name stored with the dashboard row.
        template_body:        Jinja template producing the dashboard JSON.
        template_parameters:  Values referenced by ``template_body``.
    """
    name: str
    template_body: str
    template_parameters: Dict[str, Any] = field(default_factory=dict)
