"""
Ticketing backend adapter for Gateway.

The ticketing backend does not follow plain REST: every verb has its own
sub-path (``/GetAllTickets``, ``/Get/{id}``, ``/Add``...). Paths come from
configuration because deployed variants differ.

Field names: clients send ``userId``, the backend expects ``idUser``.
List filters are emitted as ``userId``, ``date`` (yyyy-MM-dd) and
``state`` in that order, only when set.

Price and enum literals are checked here only to avoid a pointless round
trip; the backend remains authoritative for state transitions (Caducado
cannot return to Activo) and for one ticket per (user, issue date), whose
409 is forwarded untouched.
"""

from typing import Any, Dict, List, Optional

from ..domain.models import TicketCreate, TicketFilter, TicketRecord, TicketUpdate, parse_request
from .base import Operation, QueryParams, ResourceAdapter

DEFAULT_PATHS: Dict[str, str] = {
    "list": "/GetAllTickets",
    "get": "/Get/{id}",
    "create": "/Add",
    "update": "/Update/{id}",
    "delete": "/Delete/{id}",
}


class TicketsAdapter(ResourceAdapter):
    """Adapter for ticket CRUD and filtered listing."""

    service = "tickets"

    def __init__(self, paths: Optional[Dict[str, str]] = None):
        resolved = dict(DEFAULT_PATHS)
        resolved.update(paths or {})
        super().__init__([
            Operation(name="list", method="GET", path=resolved["list"],
                      success_message="Tickets obtenidos exitosamente",
                      result_shape=List[TicketRecord]),
            Operation(name="get", method="GET", path=resolved["get"],
                      success_message="Ticket obtenido exitosamente",
                      result_shape=TicketRecord),
            Operation(name="create", method="POST", path=resolved["create"],
                      success_message="Ticket creado exitosamente",
                      body_model=TicketCreate,
                      field_map={"userId": "idUser"}),
            Operation(name="update", method="PUT", path=resolved["update"],
                      success_message="Ticket actualizado exitosamente",
                      body_model=TicketUpdate),
            # Soft delete: the backend marks the ticket inactive
            Operation(name="delete", method="DELETE", path=resolved["delete"],
                      success_message="Ticket eliminado exitosamente"),
        ])

    @classmethod
    def from_config(cls, config) -> "TicketsAdapter":
        return cls({
            "list": config.tickets_list_path,
            "get": config.tickets_get_path,
            "create": config.tickets_create_path,
            "update": config.tickets_update_path,
            "delete": config.tickets_delete_path,
        })

    def build_query(self, operation: Operation, filters: Any) -> QueryParams:
        if operation.name != "list" or filters is None:
            return ()
        if not isinstance(filters, TicketFilter):
            filters = parse_request(TicketFilter, filters)

        params = []
        if filters.user_id is not None:
            params.append(("userId", filters.user_id.strip()))
        if filters.issue_date is not None:
            params.append(("date", filters.issue_date.strftime("%Y-%m-%d")))
        if filters.state is not None:
            params.append(("state", filters.state.value))
        return tuple(params)
