"""
Rendering-service access.

Modules:
  endpoint_config   : Endpoint dataclass + YAML lookup.
  base              : DashboardPublisher contract.
  grafana_publisher : Grafana implementation of DashboardPublisher.
"""

from viz_gateway.services.publisher.base import DashboardPublisher
from viz_gateway.services.publisher.endpoint_config import (
    RenderingServiceEndpoint,
    load_endpoint,
)
from viz_gateway.services.publisher.grafana_publisher import GrafanaPublisher

__all__ = [
    "DashboardPublisher",
    "GrafanaPublisher",
    "RenderingServiceEndpoint",
    "load_endpoint",
]
