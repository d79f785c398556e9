from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leaveflow"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"
    database_url: str = "postgresql+asyncpg://leaveflow:leaveflow@db:5432/leaveflow"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]

    # "raise" fails a debit against a missing balance row with NOT_FOUND;
    # "ignore" skips the debit and logs a warning.
    missing_balance_policy: Literal["raise", "ignore"] = "raise"
    default_batch_leave_type: str = "annual"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
