"""
DatabaseManager — Async connection management for the visualization store.

Key design decisions:
- NullPool: each unit of work opens/closes its own connection, so no
  connection is shared across concurrent workflows.
- Lazy engine: created on first use, not at import time.
- Explicit ownership: one manager per application, created in the
  lifespan and handed to the store. There is no module-level engine.
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool


# ── Declarative base — visualization + dashboard tables ──────────
Base = declarative_base()


def _engine_kwargs(url: str) -> Dict[str, Any]:
    """NullPool everywhere; MySQL additionally gets utf8mb4."""
    kwargs: Dict[str, Any] = {"poolclass": NullPool}
    if make_url(url).get_backend_name() == "mysql":
        kwargs["connect_args"] = {"charset": "utf8mb4"}
    return kwargs


class DatabaseManager:
    """
    Owns the async engine and session factory for one database.

    Responsibilities:
    - Lazily build the engine from the configured URL.
    - Hand out context-managed sessions with auto-commit/rollback.
    - Create the schema and dispose of the engine on shutdown.
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self._url = url
        self._echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker] = None

    @property
    def url(self) -> str:
        return self._url

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self._url,
                echo=self._echo,
                **_engine_kwargs(self._url),
            )
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    # ─────────────────────────────────────────────────────────────
    #  SESSION CONTEXT MANAGER
    # ─────────────────────────────────────────────────────────────

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """One transaction: commit on success, rollback and re-raise on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    # ─────────────────────────────────────────────────────────────
    #  SCHEMA
    # ─────────────────────────────────────────────────────────────

    async def create_all(self) -> None:
        """Create every table registered on ``Base``."""
        # Registers the models on Base.metadata
        from viz_gateway.models import visualization_models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    # ─────────────────────────────────────────────────────────────
    #  CLEANUP
    # ─────────────────────────────────────────────────────────────

    async def close(self) -> None:
        """Dispose of the engine on shutdown."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
