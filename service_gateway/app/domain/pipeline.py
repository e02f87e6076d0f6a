"""
Request pipeline for Gateway.

Every inbound call passes once through adapter -> auth -> dispatch ->
translate. Request-scoped failures are turned into envelopes here, so a
handler always gets a ``GatewayResult`` back.
"""

import asyncio
from typing import Awaitable, Callable, Iterable, Optional

from shared.errors import RequestCancelled, Unauthorized, ValidationError
from shared.logging import get_logger
from shared.metrics import MetricsCollector
from shared.tracing import trace_operation

from ..adapters.base import AdapterCall
from ..auth import AuthPropagator
from ..registry import EndpointRegistry, ServiceEndpoint
from ..transport import DispatchOutcome, OutboundRequest, RequestDispatcher
from .translator import GatewayResult, ResponseTranslator

CallBuilder = Callable[[], AdapterCall]
DisconnectProbe = Callable[[], Awaitable[bool]]


class GatewayPipeline:
    """Runs shaped calls against their backends."""

    def __init__(self,
                 registry: EndpointRegistry,
                 dispatcher: RequestDispatcher,
                 translator: ResponseTranslator,
                 propagator: AuthPropagator,
                 timeout: float,
                 poll_interval: float = 0.1,
                 metrics: Optional[MetricsCollector] = None):
        self.registry = registry
        self.dispatcher = dispatcher
        self.translator = translator
        self.propagator = propagator
        self.timeout = timeout
        self.poll_interval = poll_interval
        self.metrics = metrics
        self.logger = get_logger("gateway.pipeline")

    async def execute(self,
                      build: CallBuilder,
                      authorization: Optional[str] = None,
                      disconnected: Optional[DisconnectProbe] = None) -> GatewayResult:
        """Shape, authorize, dispatch and translate one call.

        ``build`` is invoked inside the pipeline so that validation errors
        raised while shaping are reported like any other failure.
        """
        try:
            call = build()
            headers = self.propagator.attach(call.request.headers, authorization, call.requires_identity)
        except ValidationError as exc:
            self._reject("validation", exc)
            return self.translator.from_error(exc)
        except Unauthorized as exc:
            self._reject("unauthorized", exc)
            return self.translator.from_error(exc)

        endpoint = self.registry.endpoint(call.service)
        request = call.request.with_headers(headers)
        with trace_operation(f"{call.service}.{call.operation.name}",
                             service=call.service, method=request.method, path=request.path):
            try:
                outcome = await self._dispatch(call, request, endpoint, disconnected)
            except RequestCancelled as exc:
                return self.translator.from_error(exc)

        result = self.translator.translate(
            outcome,
            shape=call.operation.result_shape,
            success_message=call.operation.success_message,
        )
        if not result.success:
            self.logger.info(
                "Call finished without success",
                service=call.service,
                operation=call.operation.name,
                status_code=result.status_code,
                error_code=result.error.code if result.error else None,
            )
        return result

    async def execute_with_prechecks(self,
                                     checks: Iterable[CallBuilder],
                                     build: CallBuilder,
                                     authorization: Optional[str] = None,
                                     disconnected: Optional[DisconnectProbe] = None) -> GatewayResult:
        """Run dependent checks one by one, then the main call.

        The first check that does not succeed is returned as the answer and
        the main call is never made. Nothing spans backends atomically.
        """
        for check in checks:
            result = await self.execute(check, authorization, disconnected)
            if not result.success:
                return result
        return await self.execute(build, authorization, disconnected)

    async def _dispatch(self,
                        call: AdapterCall,
                        request: OutboundRequest,
                        endpoint: ServiceEndpoint,
                        disconnected: Optional[DisconnectProbe]) -> DispatchOutcome:
        send = self.dispatcher.send(request, endpoint, timeout=self.timeout, operation=call.operation.name)
        if disconnected is None:
            return await send

        task = asyncio.ensure_future(send)
        try:
            while True:
                done, _ = await asyncio.wait({task}, timeout=self.poll_interval)
                if done:
                    return task.result()
                if await disconnected():
                    self.logger.info(
                        "Client disconnected, abandoning backend call",
                        service=call.service,
                        operation=call.operation.name,
                    )
                    task.cancel()
                    await asyncio.wait({task})
                    raise RequestCancelled(call.service)
        except asyncio.CancelledError:
            task.cancel()
            raise

    def _reject(self, reason: str, exc: Exception):
        self.logger.info("Request rejected before dispatch", reason=reason, error=str(exc))
        if self.metrics:
            self.metrics.record_local_rejection(reason)
