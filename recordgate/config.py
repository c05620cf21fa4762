"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All connection details come from environment variables or .env (never hardcoded credentials)
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all settings: a local SQLite file works out-of-the-box
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Record gateway settings from environment variables (RECORDGATE_*)."""

    model_config = SettingsConfigDict(
        env_prefix="RECORDGATE_", env_file=".env", case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite:///recordgate.db"
    database_echo: bool = False
    database_pool_pre_ping: bool = True

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Heroku-style postgres:// URLs are rejected by SQLAlchemy 2."""
        if isinstance(v, str) and v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    # Overrides the dialect's null-date sentinel when set
    null_date: str | None = None

    # Checkout probing: a holder is active while it has a row here
    session_table: str = "session"
    session_user_column: str = "userid"

    # Value assigned to an `access` column on new records
    default_access: int = 1

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
