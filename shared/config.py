"""
Shared configuration management for Timberline services.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="TIMBERLINE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Document store
    redis_url: str = Field(default="redis://localhost:6379/0")
    store_ttl_seconds: int = Field(default=0, ge=0)

    # Storefront
    currency: str = Field(default="GBP")

    # Internal services
    pricing_service_url: str = Field(default="http://localhost:8021")
    permissions_service_url: str = Field(default="http://localhost:8022")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)
