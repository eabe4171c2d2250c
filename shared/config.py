"""
Shared configuration management for the authorization gate.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings.

    Every field is read from an ``ACCESS_``-prefixed environment variable,
    e.g. ``jwks_url`` from ``ACCESS_JWKS_URL``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_",
        env_file=".env",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = "local"
    log_level: str = "info"

    # Identity provider
    jwks_url: str = "http://localhost:8080/realms/gate/protocol/openid-connect/certs"
    audience: str = "https://api.example.com/"
    issuer: Optional[str] = None
    allowed_algorithms: List[str] = Field(default_factory=lambda: ["RS256"])
    jwks_timeout: float = 10.0
    claims_leeway: int = 0

    # Validation cache
    redis_url: Optional[str] = None
    token_cache_prefix: str = ""
    forget_on_failure: bool = True


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
