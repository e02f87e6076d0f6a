"""
Integration tests for the ticket lifecycle through the gateway.

The gateway talks to the in-process mock ticketing service over
httpx.ASGITransport, so backend rules (price, Caducado, one ticket per
user and day, soft delete) are exercised for real.
"""

import pytest
import httpx

from shared.test_helpers import test_environment
from mocks.ticketing.server import MockTicketingServer
from service_gateway.app.main import create_app


class TestTicketFlow:
    """Integration tests for ticket operations."""

    @pytest.fixture
    def ticketing(self):
        """Mock ticketing backend."""
        return MockTicketingServer()

    @pytest.fixture
    def gateway_app(self, ticketing):
        """Gateway wired to the mock ticketing backend."""
        def transport_factory(service):
            assert service == "tickets"
            return httpx.ASGITransport(app=ticketing.app)

        return create_app(test_environment.build_config(), transport_factory)

    def client_for(self, app):
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://gateway.test")

    @pytest.mark.asyncio
    async def test_ticket_lifecycle(self, gateway_app, ticketing):
        async with self.client_for(gateway_app) as client:
            response = await client.post("/api/tickets/add", json={"userId": "12345", "type": "Ida", "price": 750})
            assert response.status_code == 201
            created = response.json()
            assert created["success"] is True
            ticket_id = created["data"]["id"]
            assert created["data"]["idUser"] == "12345"
            assert created["data"]["state"] == "Activo"

            # one ticket per user and issue date
            response = await client.post("/api/tickets/add", json={"userId": "12345", "type": "Vuelta", "price": 900})
            assert response.status_code == 409
            assert response.json()["success"] is False
            assert "ya tiene un ticket" in response.json()["message"]

            response = await client.get("/api/tickets", params={"userId": "12345", "state": "Activo"})
            assert response.status_code == 200
            assert [t["id"] for t in response.json()["data"]] == [ticket_id]

            response = await client.get(f"/api/tickets/{ticket_id}")
            assert response.status_code == 200
            assert response.json()["data"]["price"] == 750.0

            response = await client.put(f"/api/tickets/update/{ticket_id}", json={"state": "Usado"})
            assert response.status_code == 200
            assert response.json()["data"]["state"] == "Usado"

            response = await client.delete(f"/api/tickets/delete/{ticket_id}")
            assert response.status_code == 200
            assert response.json()["message"] == "Ticket eliminado exitosamente"

            # soft delete: record kept by the backend, no longer served
            response = await client.get(f"/api/tickets/{ticket_id}")
            assert response.status_code == 404
            assert ticketing.tickets[ticket_id]["isActive"] is False

    @pytest.mark.asyncio
    async def test_expired_ticket_cannot_be_reactivated(self, gateway_app):
        async with self.client_for(gateway_app) as client:
            response = await client.post("/api/tickets/add", json={"userId": "67890", "type": "Vuelta", "price": 1200})
            ticket_id = response.json()["data"]["id"]

            response = await client.put(f"/api/tickets/update/{ticket_id}", json={"state": "Caducado"})
            assert response.status_code == 200

            response = await client.put(f"/api/tickets/update/{ticket_id}", json={"state": "Activo"})
            assert response.status_code == 400
            assert "caducado no puede reactivarse" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_filters_narrow_the_listing(self, gateway_app):
        async with self.client_for(gateway_app) as client:
            await client.post("/api/tickets/add", json={"userId": "12345", "type": "Ida", "price": 750})
            await client.post("/api/tickets/add", json={"userId": "67890", "type": "Ida", "price": 750})

            response = await client.get("/api/tickets")
            assert len(response.json()["data"]) == 2

            response = await client.get("/api/tickets", params={"userId": "67890"})
            assert [t["idUser"] for t in response.json()["data"]] == ["67890"]

            response = await client.get("/api/tickets", params={"state": "Usado"})
            assert response.json()["data"] == []

    @pytest.mark.asyncio
    async def test_invalid_price_never_reaches_backend(self, gateway_app, ticketing):
        async with self.client_for(gateway_app) as client:
            response = await client.post("/api/tickets/add", json={"userId": "12345", "type": "Ida", "price": 0})

        assert response.status_code == 400
        assert ticketing.tickets == {}
