"""
VisualizationOrchestrator — Create / Query / Delete across two systems.

The relational store and the rendering service share no transaction, so
every workflow runs its steps strictly in sequence and owns the
compensation when a later step fails:

  Create:  render → persist shells → publish each → write back slugs
  Delete:  fetch → unpublish each → remove rows
  Query:   filter → grouped join

The relational store is the source of truth.  When compensation cannot
restore consistency, the surviving rows are raised to the caller inside
a :class:`ClientError` instead of being dropped.

Usage::

    orchestrator = VisualizationOrchestrator(store, publisher)

    visualization, dashboards = await orchestrator.create(
        "sales", "acme", {"team": "emea"},
        [DashboardSpec("d1", '{"title": "{{ title }}"}', {"title": "Q1"})],
    )
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from viz_gateway.core.errors import (
    ClientError,
    PublishError,
    StoreError,
    UserDataError,
)
from viz_gateway.models.visualization_models import Dashboard, Visualization
from viz_gateway.services.orchestrator.context import DashboardSpec
from viz_gateway.services.orchestrator.unwind import unpublish_uploaded
from viz_gateway.services.publisher.base import DashboardPublisher
from viz_gateway.services.store.base import (
    DashboardShell,
    VisualizationGroup,
    VisualizationStore,
)
from viz_gateway.services.templates import TemplateRenderer, template_renderer

logger = logging.getLogger(__name__)


class VisualizationOrchestrator:
    """
    Coordinates the store, the publisher and the template renderer.

    Holds no per-request state, so one instance serves concurrent
    workflows for different visualizations.
    """

    def __init__(
        self,
        store: VisualizationStore,
        publisher: DashboardPublisher,
        renderer: TemplateRenderer = template_renderer,
    ) -> None:
        self._store = store
        self._publisher = publisher
        self._renderer = renderer

    # ─────────────────────────────────────────────────────────
    #  QUERY
    # ─────────────────────────────────────────────────────────

    async def query(
        self,
        slug: str = "",
        name: str = "",
        organization_id: str = "",
        tags: Optional[Mapping[str, Any]] = None,
    ) -> List[VisualizationGroup]:
        """Visualizations matching every non-empty argument, with dashboards."""
        return await self._store.query(slug, name, organization_id, tags)

    # ─────────────────────────────────────────────────────────
    #  CREATE
    # ─────────────────────────────────────────────────────────

    async def create(
        self,
        name: str,
        organization_id: str,
        tags: Optional[Dict[str, Any]],
        dashboards: Sequence[DashboardSpec],
    ) -> Tuple[Visualization, List[Dashboard]]:
        """
        Render, persist, publish and reconcile a new visualization.

        Raises:
            UserDataError: no dashboards, or a template failed to render.
                           Nothing persisted.
            StoreError:    the shell insert or the final slug write-back failed.
            PublishError:  an upload failed and the unwind was complete;
                           the system is as it was before the call.
            ClientError:   an upload failed and the unwind left residue;
                           carries the surviving dashboards.
        """
        t0 = time.perf_counter()

        # A visualization without dashboards would be invisible to query()
        if not dashboards:
            raise UserDataError("A visualization needs at least one dashboard")

        # Step 1: Render every template before any side effect
        rendered = self._renderer.render(
            [spec.template_body for spec in dashboards],
            [spec.template_parameters for spec in dashboards],
        )

        # Step 2: Persist visualization + dashboard shells (empty slugs)
        visualization, created = await self._store.create_with_dashboards(
            name,
            organization_id,
            tags,
            [
                DashboardShell(name=spec.name, rendered_template=body)
                for spec, body in zip(dashboards, rendered)
            ],
        )

        # Step 3: Publish, in order
        uploaded_slugs: List[str] = []
        for dashboard in created:
            try:
                slug = await self._publisher.upload(
                    dashboard.rendered_template, organization_id,
                )
            except PublishError as exc:
                logger.error(
                    f"[Orchestrator] Upload {len(uploaded_slugs)} of "
                    f"{len(created)} failed for '{visualization.slug}': {exc}"
                )
                await self._unwind_create(
                    visualization, created, uploaded_slugs, organization_id, exc,
                )
                raise
            logger.debug(f"[Orchestrator] Published dashboard '{slug}'")
            uploaded_slugs.append(slug)

        # Step 4: Reconcile slugs in one write
        for dashboard, slug in zip(created, uploaded_slugs):
            dashboard.slug = slug
        try:
            await self._store.bulk_update_dashboards(created)
        except StoreError as exc:
            logger.error(
                f"[Orchestrator] Dashboards of '{visualization.slug}' are published "
                f"but their slugs were not stored: {exc}"
            )
            raise

        _log_summary("create", visualization, created, time.perf_counter() - t0)
        return visualization, created

    async def _unwind_create(
        self,
        visualization: Visualization,
        created: List[Dashboard],
        uploaded_slugs: List[str],
        organization_id: str,
        publish_error: PublishError,
    ) -> None:
        """
        Best-effort reversal of a partially published Create.

        Returns normally only when everything was removed; the caller
        then re-raises ``publish_error``.
        """
        plan = await unpublish_uploaded(
            self._publisher, created, uploaded_slugs, organization_id,
        )
        # Never published: rows go unconditionally
        plan.to_delete.extend(created[len(uploaded_slugs):])

        surviving: List[Dashboard] = list(plan.to_update)

        if plan.to_update:
            try:
                await self._store.bulk_update_dashboards(plan.to_update)
            except StoreError as exc:
                logger.error(
                    f"[Orchestrator] Could not record slugs of dashboards still "
                    f"published after '{publish_error}': {exc}"
                )

        try:
            await self._store.bulk_delete_dashboards(plan.to_delete)
        except StoreError as exc:
            logger.error(
                f"[Orchestrator] Could not delete unpublished dashboard rows "
                f"{[d.id for d in plan.to_delete]}: {exc}"
            )
            surviving.extend(plan.to_delete)

        if not plan.is_clean:
            raise ClientError(
                "Unable to create new dashboards, and remove old ones",
                visualization=visualization,
                dashboards=surviving,
            ) from publish_error

        try:
            await self._store.delete_visualization(visualization)
        except StoreError as exc:
            logger.error(
                f"[Orchestrator] Could not delete visualization "
                f"'{visualization.slug}' after unwind: {exc}"
            )
            raise ClientError(
                "Unable to create new dashboards, and remove old ones",
                visualization=visualization,
                dashboards=surviving,
            ) from publish_error

        logger.info(
            f"[Orchestrator] Unwound '{visualization.slug}' completely; "
            f"returning the original upload error"
        )

    # ─────────────────────────────────────────────────────────
    #  DELETE
    # ─────────────────────────────────────────────────────────

    async def delete(
        self, organization_id: str, slug: str,
    ) -> Tuple[Visualization, List[Dashboard]]:
        """
        Remove a visualization from the rendering service, then the store.

        Raises:
            UserDataError: empty slug or organization, or no visualization
                           with that slug in the organization.
            StoreError:    the lookup failed.
            ClientError:   some dashboards could not be unpublished; carries them.
        """
        t0 = time.perf_counter()

        visualization, dashboards = await self._store.get_by_slug(
            slug, organization_id,
        )
        if visualization is None:
            logger.info(f"[Orchestrator] Visualization '{slug}' not found")
            raise UserDataError("No visualizations found", not_found=True)

        removed: List[Dashboard] = []
        failed: List[Dashboard] = []
        first_error: Optional[PublishError] = None

        for dashboard in dashboards:
            if not dashboard.slug:
                # Never published, or already gone
                removed.append(dashboard)
                continue
            try:
                await self._publisher.delete(dashboard.slug, organization_id)
            except PublishError as exc:
                logger.error(
                    f"[Orchestrator] Could not unpublish '{dashboard.slug}': {exc}"
                )
                first_error = first_error or exc
                failed.append(dashboard)
            else:
                removed.append(dashboard)

        if failed:
            try:
                await self._store.bulk_delete_dashboards(removed)
            except StoreError as exc:
                logger.error(
                    f"[Orchestrator] Could not delete rows of unpublished "
                    f"dashboards {[d.id for d in removed]}: {exc}"
                )
            raise ClientError(
                "Failed to remove dashboards from the rendering service",
                visualization=visualization,
                dashboards=failed,
            ) from first_error

        try:
            await self._store.delete_visualization(visualization)
        except StoreError as exc:
            logger.error(
                f"[Orchestrator] Visualization '{slug}' is gone externally but "
                f"its row remains: {exc}"
            )

        _log_summary("delete", visualization, dashboards, time.perf_counter() - t0)
        return visualization, dashboards


# ─────────────────────────────────────────────────────────────────
# Private helpers (module-level, no state)
# ─────────────────────────────────────────────────────────────────

def _log_summary(
    action: str,
    visualization: Visualization,
    dashboards: List[Dashboard],
    elapsed: float,
) -> None:
    logger.info(
        f"[Orchestrator] {action} '{visualization.slug}' completed in "
        f"{elapsed:.2f}s — {len(dashboards)} dashboard(s)"
    )
