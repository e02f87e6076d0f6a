"""
Outbound request dispatcher for Gateway.

Keeps one pooled httpx.AsyncClient per backend. Headers and timeouts are
passed with every call; the pooled clients carry no per-request defaults.
"""

import asyncio
import socket
import time
from typing import Callable, Dict, Optional, Union

import httpx

from shared.errors import TransportError, TransportErrorKind
from shared.logging import get_logger, get_request_id
from shared.metrics import MetricsCollector

from ..registry import ServiceEndpoint
from .models import OutboundRequest, RawResponse

DispatchOutcome = Union[RawResponse, TransportError]

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo",
    "name resolution",
    "no address associated",
)


def classify_connect_error(exc: BaseException) -> TransportErrorKind:
    """Map a connection failure to a transport error kind."""
    current: Optional[BaseException] = exc
    while current is not None:
        if isinstance(current, socket.gaierror):
            return TransportErrorKind.DNS_FAILURE
        if isinstance(current, ConnectionRefusedError):
            return TransportErrorKind.CONNECTION_REFUSED
        current = current.__cause__ or current.__context__

    text = str(exc).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return TransportErrorKind.DNS_FAILURE
    if "refused" in text:
        return TransportErrorKind.CONNECTION_REFUSED
    return TransportErrorKind.OTHER


class RequestDispatcher:
    """Sends outbound requests over pooled per-backend transports."""

    def __init__(self,
                 timeout: float = 10.0,
                 max_connections: int = 100,
                 max_keepalive_connections: int = 20,
                 metrics: Optional[MetricsCollector] = None,
                 transport_factory: Optional[Callable[[str], httpx.AsyncBaseTransport]] = None):
        self.timeout = timeout
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_keepalive_connections,
        )
        self.metrics = metrics
        self.transport_factory = transport_factory
        self.logger = get_logger("gateway.dispatcher")
        self._clients: Dict[str, httpx.AsyncClient] = {}

    def _client_for(self, endpoint: ServiceEndpoint) -> httpx.AsyncClient:
        client = self._clients.get(endpoint.name)
        if client is None:
            transport = self.transport_factory(endpoint.name) if self.transport_factory else None
            client = httpx.AsyncClient(
                limits=self.limits,
                timeout=httpx.Timeout(self.timeout),
                transport=transport,
            )
            self._clients[endpoint.name] = client
            self.logger.info("Created pooled client", service=endpoint.name)
        return client

    async def send(self,
                   request: OutboundRequest,
                   endpoint: ServiceEndpoint,
                   timeout: Optional[float] = None,
                   operation: str = "call") -> DispatchOutcome:
        """Execute ``request`` against ``endpoint``.

        Timeouts and connection failures come back as ``TransportError``
        values. Cancellation of the calling task propagates.
        """
        deadline = timeout if timeout is not None else self.timeout
        url = f"{endpoint.base_address}{request.path}"
        headers = dict(request.headers)
        request_id = get_request_id()
        if request_id:
            headers.setdefault("X-Request-ID", request_id)

        kwargs = {"headers": headers, "timeout": httpx.Timeout(deadline)}
        if request.query:
            kwargs["params"] = list(request.query)
        if request.body is not None:
            kwargs["json"] = request.body

        client = self._client_for(endpoint)
        start_time = time.time()
        outcome = "error"
        try:
            response = await asyncio.wait_for(
                client.request(request.method, url, **kwargs),
                timeout=deadline,
            )
            outcome = str(response.status_code)
            self.logger.info(
                "Backend call completed",
                service=endpoint.name,
                operation=operation,
                method=request.method,
                path=request.path,
                status_code=response.status_code,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )
            return RawResponse(
                service=endpoint.name,
                status_code=response.status_code,
                content=response.content,
                content_type=response.headers.get("content-type"),
            )
        except (httpx.TimeoutException, asyncio.TimeoutError):
            outcome = TransportErrorKind.TIMEOUT.value
            self.logger.warning(
                "Backend call timed out",
                service=endpoint.name,
                operation=operation,
                url=url,
                timeout=deadline,
            )
            return TransportError(TransportErrorKind.TIMEOUT, endpoint.name, details={"operation": operation})
        except httpx.ConnectError as exc:
            kind = classify_connect_error(exc)
            outcome = kind.value
            self.logger.error(
                "Backend connection failed",
                service=endpoint.name,
                operation=operation,
                url=url,
                kind=kind.value,
                error=str(exc),
            )
            return TransportError(kind, endpoint.name, details={"operation": operation})
        except httpx.TransportError as exc:
            outcome = TransportErrorKind.OTHER.value
            self.logger.error(
                "Backend transport error",
                service=endpoint.name,
                operation=operation,
                url=url,
                error=str(exc),
            )
            return TransportError(TransportErrorKind.OTHER, endpoint.name, details={"operation": operation})
        except asyncio.CancelledError:
            outcome = "cancelled"
            self.logger.info("Backend call abandoned", service=endpoint.name, operation=operation)
            raise
        finally:
            if self.metrics:
                self.metrics.record_upstream_call(endpoint.name, operation, outcome, time.time() - start_time)

    async def aclose(self):
        """Close every pooled client."""
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            await client.aclose()
