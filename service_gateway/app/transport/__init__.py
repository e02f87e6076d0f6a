"""
Outbound transport for the Gateway Service.

Pooled per-backend HTTP clients plus the request/response values that
travel between adapters, the dispatcher and the translator.
"""

from .models import OutboundRequest, RawResponse
from .dispatcher import RequestDispatcher, DispatchOutcome, classify_connect_error

__all__ = [
    "OutboundRequest",
    "RawResponse",
    "RequestDispatcher",
    "DispatchOutcome",
    "classify_connect_error",
]
