"""
Visualization Database Models.

Tables: visualization, dashboard.

A visualization owns one or more dashboards. ``dashboard.slug`` mirrors
the identifier assigned by the rendering service and stays empty until
the dashboard has been published there.
"""

from typing import Any, Dict, List

from sqlalchemy import ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from viz_gateway.core.database import Base


class Visualization(Base):
    """Named, tenant-scoped group of dashboards."""
    __tablename__ = "visualization"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    tags: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    dashboards: Mapped[List["Dashboard"]] = relationship(
        back_populates="visualization",
        passive_deletes=True,
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Visualization id={self.id} slug={self.slug!r} name={self.name!r}>"


class Dashboard(Base):
    """
    One renderable unit.

    ``slug`` is non-empty only while a matching dashboard exists in the
    rendering service.
    """
    __tablename__ = "dashboard"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    visualization_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("visualization.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rendered_template: Mapped[str] = mapped_column(Text, nullable=False)
    slug: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    # Index within the create request; fixes read order
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    visualization: Mapped["Visualization"] = relationship(
        back_populates="dashboards",
        lazy="raise",
    )

    def __repr__(self) -> str:
        return f"<Dashboard id={self.id!r} name={self.name!r} slug={self.slug!r}>"


# Explicit column order used by the bulk upsert
DASHBOARD_COLUMNS = (
    "id", "visualization_id", "name", "rendered_template", "slug", "position",
)


def dashboard_row(dashboard: Dashboard) -> Dict[str, Any]:
    """Plain column → value mapping for one dashboard."""
    return {column: getattr(dashboard, column) for column in DASHBOARD_COLUMNS}
