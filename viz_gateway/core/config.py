"""
Application configuration — Pydantic Settings.

Loads from .env with strict validation. Single source of truth
for all environment-dependent values.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Packaged rendering-service definitions (viz_gateway/config/)
_DEFAULT_RENDERING_CONFIG = (
    Path(__file__).resolve().parent.parent / "config" / "rendering_service.yml"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────
    APP_NAME: str = "VisualizationGateway"
    APP_ENV: str = "development"
    DEBUG: bool = False
    API_PORT: int = 8000

    # ── Relational store ─────────────────────────────────────────
    DB_HOST: str = "localhost"
    DB_PORT: int = 3306
    DB_NAME: str = "visualizations"
    DB_USER: str = "root"
    DB_PASSWORD: str = ""
    # Full SQLAlchemy URL; wins over the DB_* fields when set
    DATABASE_URL: str = ""
    DB_CREATE_SCHEMA: bool = False

    # ── Rendering service ────────────────────────────────────────
    RENDERING_SERVICE_CONFIG: str = str(_DEFAULT_RENDERING_CONFIG)
    RENDERING_SERVICE_ID: str = "grafana"

    # ── Request context ──────────────────────────────────────────
    ORGANIZATION_HEADER: str = "X-Organization-ID"

    # ── Logging ──────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    # ── URL Builders ─────────────────────────────────────────────

    def _build_url(self, driver: str, user: str, password: str,
                   host: str, port: int, db_name: str) -> str:
        """Build a SQLAlchemy database URL."""
        cred = f"{user}:{password}" if password else user
        return f"mysql+{driver}://{cred}@{host}:{port}/{db_name}"

    @property
    def db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return self._build_url(
            "aiomysql", self.DB_USER, self.DB_PASSWORD,
            self.DB_HOST, self.DB_PORT, self.DB_NAME,
        )


@lru_cache
def get_settings() -> Settings:
    """Cached settings singleton."""
    return Settings()


settings = get_settings()
