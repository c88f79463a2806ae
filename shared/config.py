"""
Shared configuration management for the Product BFF.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_ISSUER = "my-api-gateway"


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="BFF_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Backends
    product_service_url: str = Field(default="http://product-api:8080")
    inventory_service_url: str = Field(default="http://inventory-api:8080")
    downstream_timeout_seconds: float = Field(default=5.0, gt=0)

    # Security
    public_key_path: str = Field(default="/app/public_key.pem")
    token_issuer: str = Field(default=DEFAULT_ISSUER)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8081)


def get_config(service_name: str, **overrides) -> ServiceConfig:
    """Get configuration for a specific service.

    Keyword overrides take precedence over ``BFF_*`` environment variables
    and the ``.env`` file.
    """
    return ServiceConfig(service_name=service_name, **overrides)
