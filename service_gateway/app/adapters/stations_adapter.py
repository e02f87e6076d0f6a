"""
Stations backend adapter for Gateway.

Single-station lookups are public and answer 404 for inactive stations;
listing all active stations requires an administrator token.
"""

from .base import Operation, ResourceAdapter


class StationsAdapter(ResourceAdapter):
    """Adapter for station lookups."""

    service = "stations"

    def __init__(self):
        super().__init__([
            Operation(name="get", method="GET", path="/api/stations/{id}",
                      success_message="Estación obtenida exitosamente"),
            Operation(name="list", method="GET", path="/api/stations",
                      success_message="Estaciones obtenidas exitosamente",
                      requires_identity=True),
        ])
