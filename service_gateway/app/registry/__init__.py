"""
Backend endpoint registry for the Gateway Service.
"""

from .endpoints import EndpointRegistry, ServiceEndpoint

__all__ = [
    "EndpointRegistry",
    "ServiceEndpoint",
]
