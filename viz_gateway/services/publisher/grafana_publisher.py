"""
GrafanaPublisher — DashboardPublisher backed by Grafana's dashboard API.

  upload → POST   {base_url}/api/dashboards/db          {"dashboard": …, "overwrite": …}
  delete → DELETE {base_url}/api/dashboards/db/{slug}

The organization travels in the endpoint's ``org_header`` on every call.
Transport failures and HTTP error statuses become :class:`PublishError`
(``status_code`` 0 when no response arrived).
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx

from viz_gateway.core.errors import PublishError
from viz_gateway.services.publisher.base import DashboardPublisher
from viz_gateway.services.publisher.endpoint_config import RenderingServiceEndpoint

logger = logging.getLogger(__name__)

_DASHBOARDS_PATH = "/api/dashboards/db"


class GrafanaPublisher(DashboardPublisher):
    """
    Uploads and removes dashboards in one Grafana instance.

    Each call opens its own ``httpx.AsyncClient``; ``transport`` lets
    tests plug in ``httpx.MockTransport``.
    """

    def __init__(
        self,
        endpoint: RenderingServiceEndpoint,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._endpoint = endpoint
        self._transport = transport

    @property
    def endpoint(self) -> RenderingServiceEndpoint:
        return self._endpoint

    async def upload(self, payload: str, organization_id: str) -> str:
        try:
            dashboard = json.loads(payload)
        except ValueError as exc:
            raise PublishError(f"Rendered dashboard is not valid JSON: {exc}") from exc

        response = await self._send(
            "POST",
            _DASHBOARDS_PATH,
            organization_id,
            json_body={"dashboard": dashboard, "overwrite": self._endpoint.overwrite},
        )

        try:
            data = response.json()
        except ValueError as exc:
            raise PublishError(
                f"Dashboard upload answered with invalid JSON: {exc}",
                status_code=response.status_code,
            ) from exc

        slug = data.get("slug") if isinstance(data, dict) else None
        if not slug:
            raise PublishError(
                "Dashboard upload response carried no slug",
                status_code=response.status_code,
            )

        logger.info(
            f"[GrafanaPublisher] Uploaded dashboard '{slug}' to org {organization_id}"
        )
        return slug

    async def delete(self, slug: str, organization_id: str) -> None:
        await self._send(
            "DELETE",
            f"{_DASHBOARDS_PATH}/{quote(slug, safe='')}",
            organization_id,
            slug=slug,
        )
        logger.info(
            f"[GrafanaPublisher] Deleted dashboard '{slug}' from org {organization_id}"
        )

    # ─────────────────────────────────────────────────────────
    #  INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────

    async def _send(
        self,
        method: str,
        path: str,
        organization_id: str,
        json_body: Optional[Dict[str, Any]] = None,
        slug: str = "",
    ) -> httpx.Response:
        """One request; anything but a 2xx/3xx answer raises PublishError."""
        endpoint = self._endpoint
        try:
            async with httpx.AsyncClient(
                base_url=endpoint.base_url,
                timeout=endpoint.timeout,
                auth=self._auth(),
                transport=self._transport,
            ) as client:
                response = await client.request(
                    method,
                    path,
                    headers={**endpoint.headers, endpoint.org_header: str(organization_id)},
                    json=json_body,
                )
        except httpx.TimeoutException as exc:
            logger.error(f"[GrafanaPublisher] {method} {path} timed out")
            raise PublishError(
                f"{method} {path} timed out after {endpoint.timeout}s", slug=slug,
            ) from exc
        except httpx.HTTPError as exc:
            logger.error(f"[GrafanaPublisher] {method} {path} failed: {exc}")
            raise PublishError(f"{method} {path} failed: {exc}", slug=slug) from exc

        if response.is_error:
            logger.error(
                f"[GrafanaPublisher] {method} {path} → HTTP {response.status_code}"
            )
            raise PublishError(
                f"{method} {path} answered HTTP {response.status_code}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
                slug=slug,
            )
        return response

    def _auth(self) -> Optional[httpx.Auth]:
        """Credentials from the environment variable named by the endpoint."""
        endpoint = self._endpoint
        if endpoint.auth_type == "none" or not endpoint.auth_env_var:
            return None

        secret = os.environ.get(endpoint.auth_env_var, "")
        if not secret:
            logger.warning(
                f"[GrafanaPublisher] Env var '{endpoint.auth_env_var}' is empty; "
                f"calling {endpoint.name} unauthenticated"
            )
            return None

        if endpoint.auth_type == "basic":
            user, _, password = secret.partition(":")
            return httpx.BasicAuth(user, password)
        return _BearerAuth(secret)


class _BearerAuth(httpx.Auth):
    """Grafana service-account token."""

    def __init__(self, token: str) -> None:
        self._token = token

    def auth_flow(self, request: httpx.Request):
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request
