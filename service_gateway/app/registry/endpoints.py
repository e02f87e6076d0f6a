"""
Endpoint registry for Gateway.

Maps logical backend names to base addresses. Built once at startup from
configuration and never mutated afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

import httpx

from shared.errors import ConfigurationError
from shared.logging import get_logger


@dataclass(frozen=True)
class ServiceEndpoint:
    """A downstream backend."""
    name: str
    base_address: str


def _validate_address(name: str, address: Optional[str]) -> str:
    if not address or not address.strip():
        raise ConfigurationError(
            f"Missing base address for service '{name}'",
            details={"service": name},
        )
    candidate = address.strip()
    try:
        url = httpx.URL(candidate)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(
            f"Malformed base address for service '{name}'",
            details={"service": name, "error": str(exc)},
        ) from exc

    if url.scheme not in ("http", "https") or not url.host:
        raise ConfigurationError(
            f"Malformed base address for service '{name}'",
            details={"service": name, "address": candidate},
        )
    return candidate.rstrip("/")


class EndpointRegistry:
    """Read-only lookup of backend base addresses."""

    def __init__(self, addresses: Mapping[str, Optional[str]]):
        endpoints: Dict[str, ServiceEndpoint] = {}
        for name, address in addresses.items():
            endpoints[name] = ServiceEndpoint(name=name, base_address=_validate_address(name, address))
        self._endpoints = MappingProxyType(endpoints)
        get_logger("gateway.registry").info("Endpoint registry loaded", services=sorted(endpoints))

    @classmethod
    def from_config(cls, config) -> "EndpointRegistry":
        return cls(config.service_urls())

    def resolve(self, service_name: str) -> str:
        """Return the base address registered for ``service_name``."""
        return self.endpoint(service_name).base_address

    def endpoint(self, service_name: str) -> ServiceEndpoint:
        try:
            return self._endpoints[service_name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown service '{service_name}'",
                details={"service": service_name},
            ) from None

    def names(self) -> List[str]:
        return sorted(self._endpoints)
