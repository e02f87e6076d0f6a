"""
Mock ticketing service with the verb-per-path contract of the real backend.

Rules enforced like the real service: price > 0, known type and state
literals, a Caducado ticket is never reactivated, one ticket per user and
issue date (409), and deletion is soft.
"""

import uuid
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from fastapi import APIRouter, Body, FastAPI, HTTPException, Query

from shared.logging import get_logger

TICKET_TYPES = ("Ida", "Vuelta")
TICKET_STATES = ("Activo", "Usado", "Caducado")


class MockTicketingServer:
    """Mock ticketing service implementation."""

    def __init__(self, port: int = 8004, prefix: str = "/api/ticket"):
        self.port = port
        self.logger = get_logger("mock.ticketing")
        self.app = FastAPI(title="Mock Ticketing Service", version="1.0.0")
        self.router = APIRouter(prefix=prefix)
        self.tickets: Dict[str, Dict[str, Any]] = {}

        self._setup_routes()
        self.app.include_router(self.router)

    def _setup_routes(self):
        """Set up mock ticketing routes."""

        @self.router.get("/GetAllTickets")
        async def get_all(
            userId: Optional[str] = Query(None),
            date: Optional[str] = Query(None),
            state: Optional[str] = Query(None),
        ):
            """List active tickets, optionally filtered."""
            tickets = self._active()
            if userId:
                tickets = [t for t in tickets if t["idUser"] == userId]
            if date:
                tickets = [t for t in tickets if t["issueDate"][:10] == date]
            if state:
                tickets = [t for t in tickets if t["state"] == state]
            return tickets

        @self.router.get("/Get/{ticket_id}")
        async def get_one(ticket_id: str):
            """Get ticket by ID."""
            return self._public(self._require(ticket_id))

        @self.router.post("/Add", status_code=201)
        async def add(body: Dict[str, Any] = Body(...)):
            """Create a ticket issued now."""
            user_id = body.get("idUser")
            if not user_id:
                raise HTTPException(status_code=400, detail="El usuario es requerido.")
            self._check_type(body.get("type"))
            self._check_price(body.get("price"))

            issue_date = datetime.now(timezone.utc).isoformat()
            self._check_unique(user_id, issue_date[:10])

            ticket_id = str(uuid.uuid4())
            self.tickets[ticket_id] = {
                "id": ticket_id,
                "idUser": user_id,
                "type": body["type"],
                "state": "Activo",
                "issueDate": issue_date,
                "price": float(body["price"]),
                "isActive": True,
            }
            self.logger.info("Mock ticket created", ticket_id=ticket_id, user_id=user_id)
            return self._public(self.tickets[ticket_id])

        @self.router.put("/Update/{ticket_id}")
        async def update(ticket_id: str, body: Dict[str, Any] = Body(...)):
            """Partially update a ticket."""
            ticket = self._require(ticket_id)

            if body.get("type") is not None:
                self._check_type(body["type"])
            if body.get("price") is not None:
                self._check_price(body["price"])
            if body.get("state") is not None:
                if body["state"] not in TICKET_STATES:
                    raise HTTPException(status_code=400, detail="Estado de ticket inválido.")
                if ticket["state"] == "Caducado" and body["state"] == "Activo":
                    raise HTTPException(status_code=400, detail="Un ticket caducado no puede reactivarse.")
            if body.get("issueDate") is not None:
                new_date = str(body["issueDate"])
                if new_date[:10] != ticket["issueDate"][:10]:
                    self._check_unique(ticket["idUser"], new_date[:10])
                ticket["issueDate"] = new_date

            for field in ("type", "state"):
                if body.get(field) is not None:
                    ticket[field] = body[field]
            if body.get("price") is not None:
                ticket["price"] = float(body["price"])

            return self._public(ticket)

        @self.router.delete("/Delete/{ticket_id}")
        async def delete(ticket_id: str):
            """Soft delete a ticket."""
            ticket = self._require(ticket_id)
            ticket["isActive"] = False
            self.logger.info("Mock ticket deleted", ticket_id=ticket_id)
            return {"message": "Ticket eliminado.", "id": ticket_id}

    def _active(self) -> List[Dict[str, Any]]:
        return [self._public(t) for t in self.tickets.values() if t["isActive"]]

    def _public(self, ticket: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in ticket.items() if key != "isActive"}

    def _require(self, ticket_id: str) -> Dict[str, Any]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None or not ticket["isActive"]:
            raise HTTPException(status_code=404, detail="Ticket no encontrado.")
        return ticket

    def _check_type(self, value: Any):
        if value not in TICKET_TYPES:
            raise HTTPException(status_code=400, detail="Tipo de ticket inválido.")

    def _check_price(self, value: Any):
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise HTTPException(status_code=400, detail="El precio debe ser mayor a 0.")

    def _check_unique(self, user_id: str, day: str):
        for ticket in self.tickets.values():
            if ticket["isActive"] and ticket["idUser"] == user_id and ticket["issueDate"][:10] == day:
                raise HTTPException(status_code=409, detail="El usuario ya tiene un ticket para esa fecha.")


def create_app():
    """Create mock ticketing application."""
    server = MockTicketingServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8004)
