"""Configuration management for kubectl-who-can."""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class OutputFormat(str, Enum):
    """Result output formats."""

    TABLE = "table"
    JSON = "json"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="WHOCAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "kubectl-who-can"
    app_version: str = "0.1.0"

    # Kubernetes connection
    kubeconfig: Optional[str] = None
    context: Optional[str] = None
    in_cluster: bool = False

    # Fetching
    fetch_workers: int = Field(8, ge=1, le=64)
    request_timeout: float = Field(30.0, gt=0)

    # Snapshot cache, 0 disables
    snapshot_cache_ttl: int = Field(0, ge=0)

    # Redis Configuration
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0
    redis_url: Optional[str] = Field(None, validate_default=True)

    # Logging
    log_level: LogLevel = LogLevel.WARNING
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_json: bool = False

    # Output
    output: OutputFormat = OutputFormat.TABLE

    @field_validator("redis_url", mode="before")
    @classmethod
    def build_redis_url(cls, v, info: ValidationInfo):
        """Build Redis URL from components if not provided."""
        if v:
            return v

        host = info.data.get("redis_host", "localhost")
        port = info.data.get("redis_port", 6379)
        password = info.data.get("redis_password")
        db = info.data.get("redis_db", 0)

        if password:
            return f"redis://:{password}@{host}:{port}/{db}"
        return f"redis://{host}:{port}/{db}"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v

    @property
    def cache_enabled(self) -> bool:
        return self.snapshot_cache_ttl > 0


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
