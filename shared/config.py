"""
Shared configuration management for the Perla Metro gateway.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="METRO_",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Downstream backends (no defaults: a missing address must fail startup)
    users_service_url: Optional[str] = Field(default=None)
    routes_service_url: Optional[str] = Field(default=None)
    stations_service_url: Optional[str] = Field(default=None)
    tickets_service_url: Optional[str] = Field(default=None)

    # Outbound transport
    request_timeout_seconds: float = Field(default=10.0, gt=0)
    max_connections: int = Field(default=100, gt=0)
    max_keepalive_connections: int = Field(default=20, ge=0)
    disconnect_poll_interval: float = Field(default=0.1, gt=0)

    # Ticketing contract (the deployed variant differs between releases)
    tickets_list_path: str = Field(default="/GetAllTickets")
    tickets_get_path: str = Field(default="/Get/{id}")
    tickets_create_path: str = Field(default="/Add")
    tickets_update_path: str = Field(default="/Update/{id}")
    tickets_delete_path: str = Field(default="/Delete/{id}")

    # Routes
    validate_route_stations: bool = Field(default=False)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4317")
    enable_console_tracing: bool = Field(default=False)

    def service_urls(self) -> dict:
        """Backend base addresses keyed by logical service name."""
        return {
            "users": self.users_service_url,
            "routes": self.routes_service_url,
            "stations": self.stations_service_url,
            "tickets": self.tickets_service_url,
        }


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
