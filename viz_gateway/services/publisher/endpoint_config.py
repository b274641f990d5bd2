"""
Rendering-service endpoint — where dashboards are published.

``rendering_service.yml`` maps a service id to its connection settings;
the gateway publishes to exactly one of them (``RENDERING_SERVICE_ID``).

Usage::

    endpoint = load_endpoint(Path(settings.RENDERING_SERVICE_CONFIG), "grafana")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml

logger = logging.getLogger(__name__)

AUTH_TYPES = ("none", "basic", "bearer")


@dataclass(frozen=True)
class RenderingServiceEndpoint:
    """
    Connection settings of one Grafana instance.

    ``auth_env_var`` names the variable holding ``user:password`` (basic)
    or an API token (bearer); secrets never live in the YAML.
    """
    service_id: str
    name: str
    base_url: str
    timeout: float = 10.0
    auth_type: str = "none"
    auth_env_var: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)
    org_header: str = "X-Grafana-Org-Id"
    overwrite: bool = False
    enabled: bool = True


def load_endpoint(config_path: Path, service_id: str) -> Optional[RenderingServiceEndpoint]:
    """
    Read ``service_id`` from the YAML file.

    Returns ``None`` when the file, the entry or its ``base_url`` is
    missing; a malformed file raises ``yaml.YAMLError``.
    """
    path = Path(config_path)
    if not path.exists():
        logger.warning(f"[RenderingConfig] Config file not found: {path}")
        return None

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    definition = raw.get(service_id) if isinstance(raw, dict) else None
    if not isinstance(definition, dict) or not definition.get("base_url"):
        logger.error(f"[RenderingConfig] No usable entry '{service_id}' in {path}")
        return None

    auth_type = definition.get("auth_type", "none")
    if auth_type not in AUTH_TYPES:
        raise ValueError(
            f"Rendering service '{service_id}': auth_type must be one of {AUTH_TYPES}"
        )

    endpoint = RenderingServiceEndpoint(
        service_id=service_id,
        name=definition.get("name", service_id),
        base_url=str(definition["base_url"]).rstrip("/"),
        timeout=float(definition.get("timeout", 10)),
        auth_type=auth_type,
        auth_env_var=definition.get("auth_env_var"),
        headers=dict(definition.get("headers") or {}),
        org_header=definition.get("org_header", "X-Grafana-Org-Id"),
        overwrite=bool(definition.get("overwrite", False)),
        enabled=bool(definition.get("enabled", True)),
    )
    logger.info(f"[RenderingConfig] Loaded '{service_id}' → {endpoint.base_url}")
    return endpoint
