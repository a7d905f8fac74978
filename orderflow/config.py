"""Configuration management for the order lifecycle service."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    api_port: int = Field(default=8000, description="API server port")
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_workers: int = Field(default=4, description="Number of API workers")

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "text"] = Field(default="json", description="Log format")

    # Storage
    store_backend: Literal["memory", "redis"] = Field(
        default="memory", description="Order/courier record store"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    store_max_retries: int = Field(
        default=3, ge=1, description="Optimistic write attempts before a conflict"
    )

    # Security
    access_token_expire_minutes: int = Field(
        default=60 * 24, description="Bearer token lifetime in minutes"
    )

    # Client
    client_base_url: str = Field(
        default="http://localhost:8000/api/v1", description="Base URL used by OrderflowClient"
    )
    client_timeout: float = Field(default=10.0, description="Client request timeout in seconds")
    client_read_retries: int = Field(
        default=1, ge=0, description="Retries for idempotent reads on transport failure"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
