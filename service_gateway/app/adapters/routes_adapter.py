"""
Routes backend adapter for Gateway.

Route bodies are opaque to the gateway and forwarded unchanged; the routes
backend owns their validation.
"""

from typing import Any, List

from .base import Operation, ResourceAdapter

# Body fields that reference stations, checked when the station pre-check is on
STATION_FIELDS = ("origin", "destination")
STATION_LIST_FIELDS = ("stops",)


class RoutesAdapter(ResourceAdapter):
    """Adapter for route CRUD."""

    service = "routes"

    def __init__(self):
        super().__init__([
            Operation(name="list", method="GET", path="/api/routes",
                      success_message="Rutas obtenidas exitosamente"),
            Operation(name="get", method="GET", path="/api/routes/{id}",
                      success_message="Ruta obtenida exitosamente"),
            Operation(name="create", method="POST", path="/api/routes",
                      success_message="Ruta creada exitosamente", passthrough_body=True),
            Operation(name="update", method="PUT", path="/api/routes/{id}",
                      success_message="Ruta actualizada exitosamente", passthrough_body=True),
            Operation(name="delete", method="DELETE", path="/api/routes/{id}",
                      success_message="Ruta eliminada exitosamente"),
        ])

    @staticmethod
    def referenced_stations(body: Any) -> List[str]:
        """Station ids a route body refers to, in order, without duplicates."""
        if not isinstance(body, dict):
            return []
        found: List[str] = []
        candidates: List[Any] = [body.get(name) for name in STATION_FIELDS]
        for name in STATION_LIST_FIELDS:
            value = body.get(name)
            if isinstance(value, list):
                candidates.extend(value)
        for value in candidates:
            if value is None or isinstance(value, (dict, list, bool)):
                continue
            text = str(value).strip()
            if text and text not in found:
                found.append(text)
        return found
