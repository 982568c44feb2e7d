from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

from strategy_engine.domain.entities import ReconciliationPolicy

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_ENV_FILES = (
    _BACKEND_DIR / ".env",
    ".env",
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_title: str = "Strategy Sync API"
    app_version: str = "0.1.0"
    app_env: str = "development"
    cors_origins: list[str] = ["http://localhost:5173"]

    # Primary Store (PostgREST-compatible, e.g. Supabase)
    primary_store_url: str = "http://localhost:54321"
    primary_store_api_key: str = ""

    # Signal Service
    signal_api_url: str = "https://signal-lite-backend.onrender.com"

    gateway_timeout: float = 30.0

    # Identity seed; the UI normally signs in through /api/v1/session
    actor_id: str | None = None
    actor_credential: str | None = None

    # Mutation engine
    reconciliation_policy: ReconciliationPolicy = ReconciliationPolicy.OPTIMISTIC_NO_ROLLBACK
    cascade_remote_deletes: bool = False
    hydrate_on_startup: bool = True
    mutation_history_size: int = 500

    # Logging: per-category log levels (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    log_level: str = "INFO"                  # Root / app-wide
    log_level_http: str = "WARNING"          # httpx / httpcore, outbound HTTP
    log_level_uvicorn: str = "INFO"          # uvicorn.access / uvicorn.error
    log_level_sync: str = "INFO"             # dispatcher, conversion, hydration
    log_level_gateways: str = "INFO"         # Primary Store / Signal Service adapters

    model_config = {
        "env_file": _ENV_FILES,
        "env_file_encoding": "utf-8",
    }


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance — reads .env once."""
    return Settings()
