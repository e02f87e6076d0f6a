"""
Adapters package for the Gateway Service.

One adapter per backend resource family (identity, routes, stations,
tickets). Each adapter encapsulates:

- Path templates, including verb-specific sub-paths
- Query parameter names and formats for list filters
- Field-name mapping between gateway and backend bodies
- Whether an operation needs the caller's bearer token

Adapters never touch the network; they only shape calls.
"""

from .base import AdapterCall, Operation, ResourceAdapter
from .users_adapter import UsersAdapter
from .routes_adapter import RoutesAdapter
from .stations_adapter import StationsAdapter
from .tickets_adapter import TicketsAdapter

__all__ = [
    "AdapterCall",
    "Operation",
    "ResourceAdapter",
    "UsersAdapter",
    "RoutesAdapter",
    "StationsAdapter",
    "TicketsAdapter",
]
