from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_ASYNC_DRIVERS = {
    "postgres://": "postgresql+asyncpg://",
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


class Settings(BaseSettings):
    """Runtime configuration read from ``DEVFLOW_*`` variables and ``.env`` files."""

    model_config = SettingsConfigDict(
        env_prefix="DEVFLOW_",
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["local", "test", "production"] = "local"
    app_name: str = "DevFlow API"
    api_version: str = "0.1.0"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_json: bool = False

    # Comma separated when given through the environment.
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://127.0.0.1:3000"]
    )

    database_url: str = Field(..., description="SQLAlchemy URL; sync driver schemes are upgraded.")
    db_echo: bool = False
    db_pool_size: int = Field(10, ge=1)
    db_max_overflow: int = Field(20, ge=0)
    db_pool_timeout_seconds: float = Field(
        default=10.0,
        gt=0.0,
        description="Wait for a free pooled connection before failing.",
    )
    db_command_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-statement timeout on PostgreSQL (asyncpg).",
    )

    jwt_secret: str = Field(..., min_length=16, description="HMAC key for access tokens.")
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    access_token_exp_minutes: int = Field(60, ge=1)

    http_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description="Default timeout for outbound HTTP requests.",
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("database_url")
    @classmethod
    def _use_async_driver(cls, value: str) -> str:
        for prefix, replacement in _ASYNC_DRIVERS.items():
            if value.startswith(prefix):
                return replacement + value[len(prefix) :]
        return value

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
