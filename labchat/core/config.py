"""Application configuration via environment variables."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings loaded from environment variables or .env file."""
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = "Labchat Calendar"
    debug: bool = False
    log_dir: Path = Path.home() / ".logs" / "labchat"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    allowed_origins: str = "*"  # Comma-separated origins, or "*" for all

    # Database
    database_url: str = "sqlite:///./labchat.db"

    # Background status sweep (marks finished events as elapsed)
    status_sweep_interval_minutes: int = 15

    # Calendar limits
    max_repetitions: int = 365
    recurring_preview_limit: int = 10
    max_multi_day_span_days: int = 366


settings = Settings()
