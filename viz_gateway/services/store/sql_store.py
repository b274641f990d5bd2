"""
SQLVisualizationStore — SQLAlchemy implementation of VisualizationStore.

Handles the low-level interaction with the ``visualization`` and
``dashboard`` tables.  Every public method runs in its own transaction
obtained from :class:`DatabaseManager`; SQLAlchemy failures are logged
and re-raised as :class:`StoreError`.

Bulk writes are synthesized from dialect-native statements:

  * upsert → ``INSERT … ON DUPLICATE KEY UPDATE`` (MySQL) or
             ``INSERT … ON CONFLICT (id) DO UPDATE`` (SQLite, PostgreSQL)
  * delete → ``DELETE … WHERE id IN (…)``

Usage::

    store = SQLVisualizationStore(db_manager)
    visualization, dashboards = await store.create_with_dashboards(
        "sales", "acme", {"env": "prod"},
        [DashboardShell("d1", "{...}")],
    )
"""

from __future__ import annotations

import json
import logging
import uuid
from contextlib import asynccontextmanager
from typing import (
    Any, AsyncIterator, Callable, Dict, List, Mapping, Optional, Sequence, Tuple,
)

from sqlalchemy import and_, delete, select
from sqlalchemy.dialects.mysql import insert as mysql_insert
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError

from viz_gateway.core.database import DatabaseManager
from viz_gateway.core.errors import StoreError, UserDataError
from viz_gateway.models.visualization_models import (
    DASHBOARD_COLUMNS,
    Dashboard,
    Visualization,
    dashboard_row,
)
from viz_gateway.services.store.base import (
    DashboardShell,
    VisualizationGroup,
    VisualizationStore,
)
from viz_gateway.services.store.lookup import build_lookup_conditions

logger = logging.getLogger(__name__)


def _uuid4() -> str:
    return str(uuid.uuid4())


class SQLVisualizationStore(VisualizationStore):
    """
    Relational store backed by one :class:`DatabaseManager`.

    ``identifier_factory`` mints visualization slugs and dashboard ids.
    """

    def __init__(
        self,
        db: DatabaseManager,
        identifier_factory: Callable[[], str] = _uuid4,
    ) -> None:
        self._db = db
        self._new_identifier = identifier_factory

    # ─────────────────────────────────────────────────────────────
    #  READS
    # ─────────────────────────────────────────────────────────────

    async def query(
        self,
        slug: str = "",
        name: str = "",
        organization_id: str = "",
        tags: Optional[Mapping[str, Any]] = None,
    ) -> List[VisualizationGroup]:
        conditions = build_lookup_conditions(slug, name, organization_id, tags)

        stmt = select(Visualization, Dashboard).join(
            Dashboard, Dashboard.visualization_id == Visualization.id,
        )
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(Visualization.id, Dashboard.position, Dashboard.id)

        async with self._store_errors("query"):
            async with self._db.session() as session:
                rows = (await session.execute(stmt)).all()

        groups = group_rows(rows)
        logger.info(
            f"[VisualizationStore] Query matched {len(groups)} visualization(s), "
            f"{len(rows)} dashboard row(s)"
        )
        return groups

    async def get_by_slug(
        self, slug: str, organization_id: str,
    ) -> Tuple[Optional[Visualization], List[Dashboard]]:
        # Both keys are mandatory: an empty one would widen the match
        # to several visualizations.
        if not slug or not organization_id:
            raise UserDataError(
                "Both a visualization slug and an organization are required"
            )

        # Outer join: a visualization whose dashboards are already gone
        # must still be reachable for deletion.
        stmt = (
            select(Visualization, Dashboard)
            .outerjoin(Dashboard, Dashboard.visualization_id == Visualization.id)
            .where(
                Visualization.slug == slug,
                Visualization.organization_id == organization_id,
            )
            .order_by(Dashboard.position, Dashboard.id)
        )

        async with self._store_errors("get_by_slug"):
            async with self._db.session() as session:
                rows = (await session.execute(stmt)).all()

        visualization: Optional[Visualization] = None
        dashboards: List[Dashboard] = []
        for viz_row, dash_row in rows:
            visualization = viz_row
            if dash_row is not None:
                dashboards.append(dash_row)
        return visualization, dashboards

    # ─────────────────────────────────────────────────────────────
    #  WRITES
    # ─────────────────────────────────────────────────────────────

    async def create_with_dashboards(
        self,
        name: str,
        organization_id: str,
        tags: Optional[Dict[str, Any]],
        dashboards: Sequence[DashboardShell],
    ) -> Tuple[Visualization, List[Dashboard]]:
        tags = dict(tags or {})
        try:
            json.dumps(tags)
        except (TypeError, ValueError) as exc:
            raise UserDataError(f"Tags are not JSON serializable: {exc}") from exc

        logger.debug(f"[VisualizationStore] Creating visualization '{name}'")
        visualization = Visualization(
            slug=self._new_identifier(),
            name=name,
            organization_id=organization_id,
            tags=tags,
        )

        async with self._store_errors("create_with_dashboards"):
            async with self._db.session() as session:
                session.add(visualization)
                # Assigns visualization.id for the dashboard foreign keys
                await session.flush()

                created = [
                    Dashboard(
                        id=self._new_identifier(),
                        visualization_id=visualization.id,
                        name=shell.name,
                        rendered_template=shell.rendered_template,
                        slug="",
                        position=position,
                    )
                    for position, shell in enumerate(dashboards)
                ]
                session.add_all(created)
                await session.flush()

        logger.info(
            f"[VisualizationStore] Created visualization '{visualization.slug}' "
            f"with {len(created)} dashboard shell(s)"
        )
        return visualization, created

    async def bulk_update_dashboards(self, dashboards: Sequence[Dashboard]) -> None:
        if not dashboards:
            return

        rows = [dashboard_row(dashboard) for dashboard in dashboards]
        stmt = upsert_statement(self._db.engine.dialect.name, rows)
        logger.debug(
            f"[VisualizationStore] Bulk upsert of {len(rows)} dashboard(s)"
        )

        async with self._store_errors("bulk_update_dashboards"):
            async with self._db.session() as session:
                await session.execute(stmt)

    async def bulk_delete_dashboards(self, dashboards: Sequence[Dashboard]) -> None:
        if not dashboards:
            return

        ids = [dashboard.id for dashboard in dashboards]
        stmt = (
            delete(Dashboard)
            .where(Dashboard.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        logger.debug(f"[VisualizationStore] Bulk delete of dashboards {ids}")

        async with self._store_errors("bulk_delete_dashboards"):
            async with self._db.session() as session:
                await session.execute(stmt)

    async def delete_visualization(self, visualization: Optional[Visualization]) -> None:
        if visualization is None:
            return

        async with self._store_errors("delete_visualization"):
            async with self._db.session() as session:
                # Same transaction: never leave dashboards without an owner
                await session.execute(
                    delete(Dashboard)
                    .where(Dashboard.visualization_id == visualization.id)
                    .execution_options(synchronize_session=False)
                )
                await session.execute(
                    delete(Visualization)
                    .where(Visualization.id == visualization.id)
                    .execution_options(synchronize_session=False)
                )

        logger.info(
            f"[VisualizationStore] Deleted visualization '{visualization.slug}'"
        )

    # ─────────────────────────────────────────────────────────────
    #  INTERNAL HELPERS
    # ─────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def _store_errors(self, operation: str) -> AsyncIterator[None]:
        """Translate SQLAlchemy failures into StoreError."""
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error(f"[VisualizationStore] {operation} failed: {exc}")
            raise StoreError(f"{operation} failed: {exc}") from exc


# ─────────────────────────────────────────────────────────────────
# Module-level helpers (no state)
# ─────────────────────────────────────────────────────────────────

def group_rows(rows: Sequence[Tuple[Visualization, Dashboard]]) -> List[VisualizationGroup]:
    """
    Fold joined ``(visualization, dashboard)`` rows into groups.

    Groups are keyed by the visualization primary key and keep the
    order in which each visualization first appears.
    """
    groups: Dict[int, VisualizationGroup] = {}
    for visualization, dashboard in rows:
        group = groups.get(visualization.id)
        if group is None:
            group = groups[visualization.id] = VisualizationGroup(visualization)
        group.dashboards.append(dashboard)
    return list(groups.values())


def upsert_statement(dialect_name: str, rows: List[Dict[str, Any]]):
    """Multi-row upsert over ``DASHBOARD_COLUMNS`` for the given dialect."""
    table = Dashboard.__table__
    update_columns = [column for column in DASHBOARD_COLUMNS if column != "id"]

    if dialect_name == "mysql":
        stmt = mysql_insert(table).values(rows)
        return stmt.on_duplicate_key_update(
            {column: stmt.inserted[column] for column in update_columns}
        )

    if dialect_name in ("sqlite", "postgresql"):
        insert_fn = sqlite_insert if dialect_name == "sqlite" else postgresql_insert
        stmt = insert_fn(table).values(rows)
        return stmt.on_conflict_do_update(
            index_elements=[table.c.id],
            set_={column: stmt.excluded[column] for column in update_columns},
        )

    raise StoreError(f"Bulk upsert is not supported on dialect '{dialect_name}'")
