"""
Domain utilities for the Gateway Service.

Payload models, response translation and the request pipeline that ties
adapters, identity propagation and dispatch together.
"""

from .models import TicketState, TicketType
from .translator import GatewayResult, ResponseTranslator

__all__ = [
    "GatewayResult",
    "ResponseTranslator",
    "TicketState",
    "TicketType",
]
