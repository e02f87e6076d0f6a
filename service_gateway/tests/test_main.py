"""
Tests for the Gateway HTTP surface.
"""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.errors import ConfigurationError
from shared.test_helpers import RecordingBackend, test_data_factory, test_environment, mock_token_generator
from service_gateway.app.main import GatewayService, create_app


def json_response(status_code, payload):
    return lambda request: httpx.Response(status_code, json=payload)


@pytest.fixture
def backend():
    return RecordingBackend()


@pytest.fixture
def client(backend):
    """Create test client."""
    app = create_app(test_environment.build_config(), backend.transport_factory)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user():
    return test_data_factory.create_test_users()[0]


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {mock_token_generator.generate_access_token(user)}"}


class TestOperationalEndpoints:
    """Banner, health and metrics."""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "Perla Metro API Gateway"
        assert data["services"] == ["routes", "stations", "tickets", "users"]

    def test_health_check(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "gateway"
        assert data["status"] == "ok"
        assert data["dependencies"]["tickets"] == "http://tickets.test/api/ticket"

    def test_healthz(self, client):
        assert client.get("/healthz").json() == {"status": "ok"}

    def test_metrics_endpoint(self, client):
        client.get("/healthz")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]
        assert "http_requests_total" in response.text

    def test_request_id_is_generated(self, client):
        response = client.get("/healthz")
        assert response.headers["X-Request-ID"]

    def test_request_id_is_echoed_and_forwarded(self, client, backend):
        backend.responder = json_response(200, [])
        response = client.get("/api/routes", headers={"X-Request-ID": "abc-123"})
        assert response.headers["X-Request-ID"] == "abc-123"
        assert backend.last_request.headers["x-request-id"] == "abc-123"

    def test_missing_backend_address_fails_startup(self):
        config = test_environment.build_config(tickets_service_url=None)
        with pytest.raises(ConfigurationError):
            GatewayService(config)


class TestAuthEndpoints:
    """Identity routes."""

    def test_login(self, client, backend, user):
        token = mock_token_generator.generate_access_token(user)
        backend.responder = json_response(200, test_data_factory.create_login_result(user, token))

        response = client.post("/api/auth/login", json={"email": user.email, "password": user.password})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Login exitoso"
        assert body["data"]["accessToken"] == token
        assert body["data"]["isAdmin"] is user.is_admin
        assert "access_token" not in body["data"]
        assert str(backend.last_request.url) == "http://users.test/api/v1/auth/login"
        assert "authorization" not in backend.last_request.headers

    def test_login_bad_credentials_passthrough(self, client, backend, user):
        backend.responder = lambda request: httpx.Response(401, text="Credenciales inválidas")

        response = client.post("/api/auth/login", json={"email": user.email, "password": "wrong"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Credenciales inválidas", "data": None}

    def test_login_with_invalid_email_is_rejected_locally(self, client, backend):
        response = client.post("/api/auth/login", json={"email": "nope", "password": "x"})
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert backend.calls == 0

    def test_malformed_json_body(self, client, backend):
        response = client.post(
            "/api/auth/login",
            content=b"{broken",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Datos inválidos: el cuerpo no es JSON válido"
        assert backend.calls == 0

    def test_register(self, client, backend, user):
        backend.responder = json_response(201, test_data_factory.create_user_record(user))

        response = client.post("/api/auth/register", json={
            "fullName": user.full_name,
            "email": user.email,
            "password": user.password,
        })

        assert response.status_code == 201
        assert response.json()["message"] == "Usuario registrado exitosamente"
        assert json.loads(backend.last_request.content)["full_name"] == user.full_name

    def test_session_requires_token(self, client, backend):
        response = client.get("/api/auth/session")
        assert response.status_code == 401
        assert response.json()["message"] == "Token de autorización requerido"
        assert backend.calls == 0

    def test_session_forwards_token(self, client, backend, user, auth_headers):
        backend.responder = json_response(200, test_data_factory.create_session_info(user))

        response = client.get("/api/auth/session", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["userId"] == user.user_id
        assert response.json()["data"]["expiresAt"]
        assert backend.last_request.headers["authorization"] == auth_headers["Authorization"]

    def test_get_user(self, client, backend, user, auth_headers):
        backend.responder = json_response(200, test_data_factory.create_user_record(user))

        response = client.get(f"/api/auth/users/{user.user_id}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["message"] == "Usuario obtenido exitosamente"
        assert response.json()["data"]["fullName"] == user.full_name
        assert response.json()["data"]["isAdmin"] is user.is_admin
        assert backend.last_request.url.path == f"/api/v1/users/{user.user_id}"

    def test_logout_is_local(self, client, backend):
        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Sesión cerrada exitosamente. Descarte el token del cliente."
        assert body["data"]["loggedOut"] is True
        assert body["data"]["timestamp"]
        assert backend.calls == 0


class TestRouteEndpoints:
    """Routes backend routes."""

    def test_list_routes(self, client, backend):
        routes = test_data_factory.create_test_routes()
        backend.responder = json_response(200, routes)

        response = client.get("/api/routes")

        assert response.status_code == 200
        assert response.json()["data"] == routes
        assert str(backend.last_request.url) == "http://routes.test/api/routes"

    def test_create_route_forwards_body(self, client, backend):
        route = test_data_factory.create_test_routes()[0]
        backend.responder = json_response(201, route)

        response = client.post("/api/routes", json=route)

        assert response.status_code == 201
        assert json.loads(backend.last_request.content) == route
        assert backend.calls == 1

    def test_non_finite_route_body_is_rejected(self, client, backend):
        response = client.post(
            "/api/routes",
            content=b'{"origin": "ST-1", "distance": NaN}',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert backend.calls == 0

    def test_update_and_delete_route(self, client, backend):
        backend.responder = json_response(200, {"id": "R-1"})
        assert client.put("/api/routes/R-1", json={"endTime": "22:00"}).status_code == 200
        assert backend.last_request.method == "PUT"

        backend.responder = lambda request: httpx.Response(204)
        response = client.delete("/api/routes/R-1")
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Ruta eliminada exitosamente", "data": None}

    def test_unreachable_backend(self, client, backend):
        def refuse(request):
            raise httpx.ConnectError("Connection refused", request=request)

        backend.responder = refuse
        response = client.get("/api/routes/R-1")

        assert response.status_code == 502
        assert response.json() == {"success": False, "message": "Servicio no disponible", "data": None}


class TestRouteStationCheck:
    """Station pre-check on route creation."""

    @pytest.fixture
    def client(self, backend):
        config = test_environment.build_config(validate_route_stations=True)
        with TestClient(create_app(config, backend.transport_factory)) as test_client:
            yield test_client

    def test_inactive_station_blocks_creation(self, client, backend):
        def respond(request):
            if request.url.path == "/api/stations/ST-3":
                return httpx.Response(404, text="Estación no encontrada")
            if request.url.host == "stations.test":
                return httpx.Response(200, json=test_data_factory.create_station())
            return httpx.Response(201, json={"id": "R-9"})

        backend.responder = respond
        response = client.post("/api/routes", json=test_data_factory.create_test_routes()[0])

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert all(request.url.host == "stations.test" for request in backend.requests)

    def test_active_stations_allow_creation(self, client, backend):
        def respond(request):
            if request.url.host == "stations.test":
                return httpx.Response(200, json=test_data_factory.create_station())
            return httpx.Response(201, json={"id": "R-9"})

        backend.responder = respond
        response = client.post("/api/routes", json=test_data_factory.create_test_routes()[0])

        assert response.status_code == 201
        # origin, destination and one stop, then the route itself
        assert backend.calls == 4


class TestTicketEndpoints:
    """Ticketing backend routes."""

    def test_list_tickets_with_filters(self, client, backend):
        tickets = test_data_factory.create_test_tickets()
        backend.responder = json_response(200, tickets)

        response = client.get("/api/tickets?userId=12345&state=Activo")

        assert response.status_code == 200
        assert str(backend.last_request.url) == "http://tickets.test/api/ticket/GetAllTickets?userId=12345&state=Activo"
        assert response.json() == {
            "success": True,
            "message": "Tickets obtenidos exitosamente",
            "data": tickets,
        }

    def test_list_tickets_date_filter(self, client, backend):
        backend.responder = json_response(200, [])
        client.get("/api/tickets?date=2025-03-01")
        assert backend.last_request.url.params["date"] == "2025-03-01"

    def test_list_tickets_rejects_timestamp_date(self, client, backend):
        response = client.get("/api/tickets?date=2025-03-01T00:00:00")
        assert response.status_code == 400
        assert backend.calls == 0

    def test_list_tickets_bad_state(self, client, backend):
        response = client.get("/api/tickets?state=Perdido")
        assert response.status_code == 400
        assert backend.calls == 0

    def test_get_ticket(self, client, backend):
        ticket = test_data_factory.create_test_tickets()[0]
        backend.responder = json_response(200, ticket)

        response = client.get("/api/tickets/T-001")

        assert response.status_code == 200
        assert response.json()["data"] == ticket
        assert backend.last_request.url.path == "/api/ticket/Get/T-001"

    def test_create_ticket(self, client, backend):
        ticket = test_data_factory.create_test_tickets()[0]
        backend.responder = json_response(201, ticket)

        response = client.post("/api/tickets/add", json={"userId": "12345", "type": "Ida", "price": 750})

        assert response.status_code == 201
        assert response.json()["message"] == "Ticket creado exitosamente"
        assert json.loads(backend.last_request.content) == {"idUser": "12345", "type": "Ida", "price": 750.0}

    @pytest.mark.parametrize("price", [0, -1])
    def test_create_ticket_rejects_price(self, client, backend, price):
        response = client.post("/api/tickets/add", json={"userId": "12345", "type": "Ida", "price": price})
        assert response.status_code == 400
        assert backend.calls == 0

    @pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_price_is_rejected(self, client, backend, literal):
        response = client.post(
            "/api/tickets/add",
            content=f'{{"userId": "12345", "type": "Ida", "price": {literal}}}'.encode(),
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Datos inválidos: el cuerpo no es JSON válido"
        assert backend.calls == 0

    def test_create_ticket_rejects_blank_user(self, client, backend):
        response = client.post("/api/tickets/add", json={"userId": "   ", "type": "Ida", "price": 750})
        assert response.status_code == 400
        assert backend.calls == 0

    def test_update_ticket_rejects_price(self, client, backend):
        response = client.put("/api/tickets/update/T-001", json={"price": 0})
        assert response.status_code == 400
        assert backend.calls == 0

    def test_duplicate_ticket_conflict(self, client, backend):
        backend.responder = lambda request: httpx.Response(409, text="El usuario ya tiene un ticket para esa fecha.")

        response = client.post("/api/tickets/add", json={"userId": "12345", "type": "Vuelta", "price": 900})

        assert response.status_code == 409
        assert response.json()["message"] == "El usuario ya tiene un ticket para esa fecha."

    def test_update_ticket(self, client, backend):
        ticket = dict(test_data_factory.create_test_tickets()[0], state="Usado")
        backend.responder = json_response(200, ticket)

        response = client.put("/api/tickets/update/T-001", json={"state": "Usado"})

        assert response.status_code == 200
        assert backend.last_request.url.path == "/api/ticket/Update/T-001"
        assert json.loads(backend.last_request.content) == {"state": "Usado"}

    def test_delete_ticket(self, client, backend):
        backend.responder = json_response(200, {"message": "Ticket eliminado."})

        response = client.delete("/api/tickets/delete/T-001")

        assert response.status_code == 200
        assert response.json()["message"] == "Ticket eliminado exitosamente"
        assert backend.last_request.method == "DELETE"

    def test_malformed_backend_payload(self, client, backend):
        backend.responder = lambda request: httpx.Response(200, content=b"<html>oops</html>")

        response = client.get("/api/tickets/T-001")

        assert response.status_code == 502
        assert response.json()["message"] == "Respuesta inválida del servicio"
