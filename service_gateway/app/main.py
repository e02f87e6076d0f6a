"""
API Gateway service for Perla Metro.

Single entry point for the identity, routes, stations and ticketing
backends. Every forwarded call goes through the gateway pipeline and
answers with the uniform ``{success, message, data}`` envelope.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

import httpx
from fastapi import Request
from fastapi.responses import JSONResponse

from shared.base_service import BaseService
from shared.config import ServiceConfig, get_config
from shared.envelope import UniformResponse
from shared.errors import ValidationError
from shared.tracing import current_trace_id

from .adapters import RoutesAdapter, StationsAdapter, TicketsAdapter, UsersAdapter
from .auth import AuthPropagator
from .domain import GatewayResult, ResponseTranslator
from .domain.pipeline import CallBuilder, GatewayPipeline
from .registry import EndpointRegistry
from .transport import RequestDispatcher

TICKET_FILTERS = ("userId", "date", "state")


def _reject_constant(name: str):
    # Infinity, -Infinity and NaN are not JSON
    raise ValueError(f"invalid JSON constant {name}")


class GatewayService(BaseService):
    """API Gateway service implementation."""

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 transport_factory: Optional[Callable[[str], httpx.AsyncBaseTransport]] = None):
        super().__init__("gateway", 8000, config=config or get_config("gateway", 8000))

        # Missing or malformed backend addresses abort startup here
        self.registry = EndpointRegistry.from_config(self.config)
        self.dispatcher = RequestDispatcher(
            timeout=self.config.request_timeout_seconds,
            max_connections=self.config.max_connections,
            max_keepalive_connections=self.config.max_keepalive_connections,
            metrics=self.metrics,
            transport_factory=transport_factory,
        )
        self.translator = ResponseTranslator(self.metrics)
        self.propagator = AuthPropagator()
        self.pipeline = GatewayPipeline(
            self.registry,
            self.dispatcher,
            self.translator,
            self.propagator,
            timeout=self.config.request_timeout_seconds,
            poll_interval=self.config.disconnect_poll_interval,
            metrics=self.metrics,
        )

        self.users = UsersAdapter()
        self.routes = RoutesAdapter()
        self.stations = StationsAdapter()
        self.tickets = TicketsAdapter.from_config(self.config)

        self._setup_gateway_routes()
        self._setup_auth_routes()
        self._setup_route_routes()
        self._setup_ticket_routes()

    async def _on_shutdown(self):
        await self.dispatcher.aclose()
        await super()._on_shutdown()

    def _describe_dependencies(self):
        return {name: self.registry.resolve(name) for name in self.registry.names()}

    async def _read_body(self, request: Request) -> Any:
        """Decode the inbound JSON body; an empty body is ``None``."""
        raw = await request.body()
        if not raw.strip():
            return None
        try:
            return json.loads(raw, parse_constant=_reject_constant)
        except ValueError as exc:
            raise ValidationError("Datos inválidos: el cuerpo no es JSON válido") from exc

    def _to_response(self, result: GatewayResult) -> JSONResponse:
        headers = {}
        trace_id = current_trace_id()
        if trace_id and not result.success:
            headers["X-Trace-ID"] = trace_id
        return JSONResponse(
            status_code=result.status_code,
            content=result.envelope.model_dump(mode="json"),
            headers=headers,
        )

    async def _forward(self,
                       request: Request,
                       build: CallBuilder,
                       checks: Optional[List[CallBuilder]] = None) -> JSONResponse:
        authorization = request.headers.get("Authorization")
        if checks:
            result = await self.pipeline.execute_with_prechecks(
                checks, build, authorization, disconnected=request.is_disconnected
            )
        else:
            result = await self.pipeline.execute(build, authorization, disconnected=request.is_disconnected)
        return self._to_response(result)

    def _station_check(self, station_id: str) -> CallBuilder:
        return lambda: self.stations.call("get", {"id": station_id})

    def _setup_gateway_routes(self):
        """Set up gateway-level routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "Perla Metro API Gateway",
                "version": "1.0.0",
                "status": "running",
                "services": self.registry.names(),
            }

        @self.app.get("/healthz")
        async def healthz():
            """Liveness probe."""
            return {"status": "ok"}

    def _setup_auth_routes(self):
        """Identity backend routes."""

        @self.app.post("/api/auth/login")
        async def login(request: Request):
            body = await self._read_body(request)
            return await self._forward(request, lambda: self.users.call("login", body=body))

        @self.app.post("/api/auth/register")
        async def register(request: Request):
            body = await self._read_body(request)
            return await self._forward(request, lambda: self.users.call("register", body=body))

        @self.app.get("/api/auth/session")
        async def session(request: Request):
            return await self._forward(request, lambda: self.users.call("session"))

        @self.app.post("/api/auth/logout")
        async def logout():
            # Tokens are stateless; the client discards its own copy
            envelope = UniformResponse.ok(
                "Sesión cerrada exitosamente. Descarte el token del cliente.",
                {"loggedOut": True, "timestamp": datetime.now(timezone.utc).isoformat()},
            )
            return JSONResponse(status_code=200, content=envelope.model_dump(mode="json"))

        @self.app.get("/api/auth/users/{user_id}")
        async def get_user(user_id: str, request: Request):
            return await self._forward(request, lambda: self.users.call("get", {"id": user_id}))

    def _setup_route_routes(self):
        """Routes backend routes."""

        @self.app.get("/api/routes")
        async def list_routes(request: Request):
            return await self._forward(request, lambda: self.routes.call("list"))

        @self.app.post("/api/routes")
        async def create_route(request: Request):
            body = await self._read_body(request)
            checks = []
            if self.config.validate_route_stations:
                checks = [self._station_check(station_id)
                          for station_id in RoutesAdapter.referenced_stations(body)]
            return await self._forward(request, lambda: self.routes.call("create", body=body), checks)

        @self.app.get("/api/routes/{route_id}")
        async def get_route(route_id: str, request: Request):
            return await self._forward(request, lambda: self.routes.call("get", {"id": route_id}))

        @self.app.put("/api/routes/{route_id}")
        async def update_route(route_id: str, request: Request):
            body = await self._read_body(request)
            return await self._forward(request, lambda: self.routes.call("update", {"id": route_id}, body))

        @self.app.delete("/api/routes/{route_id}")
        async def delete_route(route_id: str, request: Request):
            return await self._forward(request, lambda: self.routes.call("delete", {"id": route_id}))

    def _setup_ticket_routes(self):
        """Ticketing backend routes."""

        @self.app.post("/api/tickets/add")
        async def create_ticket(request: Request):
            body = await self._read_body(request)
            return await self._forward(request, lambda: self.tickets.call("create", body=body))

        @self.app.get("/api/tickets")
        async def list_tickets(request: Request):
            filters = {name: request.query_params[name]
                       for name in TICKET_FILTERS if name in request.query_params}
            return await self._forward(request, lambda: self.tickets.call("list", filters=filters))

        @self.app.get("/api/tickets/{ticket_id}")
        async def get_ticket(ticket_id: str, request: Request):
            return await self._forward(request, lambda: self.tickets.call("get", {"id": ticket_id}))

        @self.app.put("/api/tickets/update/{ticket_id}")
        async def update_ticket(ticket_id: str, request: Request):
            body = await self._read_body(request)
            return await self._forward(request, lambda: self.tickets.call("update", {"id": ticket_id}, body))

        @self.app.delete("/api/tickets/delete/{ticket_id}")
        async def delete_ticket(ticket_id: str, request: Request):
            return await self._forward(request, lambda: self.tickets.call("delete", {"id": ticket_id}))


def create_app(config: Optional[ServiceConfig] = None, transport_factory=None):
    """Create FastAPI application."""
    service = GatewayService(config, transport_factory)
    return service.app


if __name__ == "__main__":
    service = GatewayService()
    service.run()
