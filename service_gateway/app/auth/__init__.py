"""
Authentication helpers for the Gateway Service.
"""

from .propagator import AuthPropagator, extract_bearer_token

__all__ = [
    "AuthPropagator",
    "extract_bearer_token",
]
