"""
Unwind planning for a Create whose publish loop failed part-way.

For every dashboard already uploaded, try to remove it from the
rendering service again.  The outcome decides what happens to its row:

  removed externally     → row goes to ``to_delete``
  still there externally → row keeps its slug and goes to ``to_update``

Dashboards that were never uploaded are appended to ``to_delete`` by
the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from viz_gateway.core.errors import PublishError
from viz_gateway.models.visualization_models import Dashboard
from viz_gateway.services.publisher.base import DashboardPublisher

logger = logging.getLogger(__name__)


@dataclass
class UnwindPlan:
    to_update: List[Dashboard] = field(default_factory=list)
    to_delete: List[Dashboard] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        """True when nothing is left behind in the rendering service."""
        return not self.to_update


async def unpublish_uploaded(
    publisher: DashboardPublisher,
    dashboards: Sequence[Dashboard],
    uploaded_slugs: Sequence[str],
    organization_id: str,
) -> UnwindPlan:
    """
    Delete ``uploaded_slugs`` from the rendering service, one by one.

    ``uploaded_slugs[i]`` belongs to ``dashboards[i]``.
    """
    plan = UnwindPlan()

    for dashboard, slug in zip(dashboards, uploaded_slugs):
        try:
            await publisher.delete(slug, organization_id)
        except PublishError as exc:
            logger.error(
                f"[Unwind] Could not remove dashboard '{slug}' "
                f"(row {dashboard.id}): {exc}"
            )
            dashboard.slug = slug
            plan.to_update.append(dashboard)
        else:
            plan.to_delete.append(dashboard)

    logger.info(
        f"[Unwind] {len(plan.to_delete)} removed, "
        f"{len(plan.to_update)} still published"
    )
    return plan
