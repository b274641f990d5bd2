"""
Error taxonomy shared by the store, the publisher and the orchestrator.

  UserDataError  — the caller sent something unusable (bad template,
                   missing parameter, unknown visualization).
  StoreError     — the relational layer failed.
  PublishError   — the rendering service failed or answered badly.
  ClientError    — compensation could not restore consistency; carries
                   whatever rows survived so the caller can inspect them.
"""

from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from viz_gateway.models.visualization_models import Dashboard, Visualization


class GatewayError(Exception):
    """Base class for every error raised by the gateway core."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UserDataError(GatewayError):
    """Invalid caller input. Never retried."""

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        not_found: bool = False,
    ):
        super().__init__(message)
        self.index = index
        self.not_found = not_found


class StoreError(GatewayError):
    """Relational store failure."""


class PublishError(GatewayError):
    """Rendering-service failure. ``status_code`` is 0 for transport errors."""

    def __init__(self, message: str, status_code: int = 0, slug: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.slug = slug


class ClientError(GatewayError):
    """
    Residual inconsistency left after a compensation pass.

    ``dashboards`` holds the rows whose relational and external state
    could not be reconciled.
    """

    def __init__(
        self,
        message: str,
        visualization: Optional["Visualization"] = None,
        dashboards: Optional[List["Dashboard"]] = None,
    ):
        super().__init__(message)
        self.visualization = visualization
        self.dashboards = list(dashboards or [])
