"""Settings - every tunable of the canvas service, read from the environment.

Invariants:
    - The API key only ever comes from ANTHROPIC_API_KEY or .env
    - get_settings() returns one cached Settings per process
    - Defaults run the service locally on SQLite with no extra setup
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = "sqlite+aiosqlite:///./mindcanvas.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Anthropic
    anthropic_api_key: str = "sk-ant-placeholder"
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 60
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 30_000

    # AI collaborators
    generation_model: str = "claude-sonnet-4-5"
    generation_max_tokens: int = 4096
    enrichment_max_tokens: int = 1024

    # Saved projects
    project_quota: int = 50
    project_max_bytes: int = 1_048_576

    # Canvas geometry
    node_width: float = 160.0
    node_height: float = 40.0
    root_node_width: float = 180.0
    root_node_height: float = 56.0
    manual_node_spread: float = 400.0

    # Export
    export_padding: float = 50.0
    export_background: str = "#F8FAFC"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
