"""
Shared configuration management for the Sathira Sweet access layer.
"""

from typing import Optional
from urllib.parse import quote

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="SATHIRA_",
        env_file=".env",
        case_sensitive=False,
        extra="allow",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Cache store
    redis_host: str = Field(default="localhost")
    redis_port: int = Field(default=6379)
    redis_password: Optional[str] = Field(default=None)
    redis_db: int = Field(default=0)
    redis_url: Optional[str] = Field(default=None)
    cache_default_ttl: int = Field(default=3600)

    # Auth
    jwt_secret: str = Field(default="sathira-dev-secret-change-me-0123456789")
    jwt_algorithm: str = Field(default="HS256")
    jwt_expires_seconds: int = Field(default=7 * 24 * 3600)

    # Client side
    api_base_url: str = Field(default="http://localhost:5008")
    ws_url: str = Field(default="ws://localhost:5008/ws/notifications")
    request_timeout: float = Field(default=15.0)
    client_storage_path: str = Field(default=".sathira/storage.json")
    download_dir: str = Field(default="downloads")

    @model_validator(mode="after")
    def _assemble_redis_url(self):
        """Build the Redis URL from host/port/credentials unless given whole."""
        if not self.redis_url:
            auth = f":{quote(self.redis_password, safe='')}@" if self.redis_password else ""
            self.redis_url = f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return self


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
