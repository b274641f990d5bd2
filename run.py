"""
Visualization Gateway — Application Runner.

Usage:
    python run.py          → API server
    python run.py api      → API server (FastAPI on API_PORT)
    python run.py init-db  → Create the visualization/dashboard tables
"""

import asyncio
import sys

import uvicorn

from viz_gateway.core.config import settings
from viz_gateway.core.database import DatabaseManager


def run_fastapi() -> None:
    """Start the FastAPI gateway."""
    print(f"🚀 FastAPI → http://localhost:{settings.API_PORT}")
    if settings.DEBUG:
        print(f"📄 Docs    → http://localhost:{settings.API_PORT}/api/docs")
    uvicorn.run(
        "viz_gateway.main:app",
        host="0.0.0.0",
        port=settings.API_PORT,
        reload=settings.DEBUG,
    )


def init_db() -> None:
    """Create every table on the configured database."""

    async def _create() -> None:
        db_manager = DatabaseManager(settings.db_url, echo=settings.DEBUG)
        try:
            await db_manager.create_all()
        finally:
            await db_manager.close()

    asyncio.run(_create())
    print("✅ Schema created")


if __name__ == "__main__":
    mode = sys.argv[1].lower() if len(sys.argv) > 1 else "api"
    runners = {"api": run_fastapi, "init-db": init_db}
    runner = runners.get(mode)
    if runner is None:
        print(f"Unknown mode '{mode}'. Use: api | init-db")
        sys.exit(1)
    runner()
