"""
Response translation for Gateway.

Turns a dispatch outcome into the uniform envelope plus the HTTP status
the client receives:

- 2xx: payload decoded and checked against the operation's declared
  shape; identity results are re-serialized in camelCase, anything else
  is returned exactly as the backend sent it
- non-2xx: the backend's status and raw body, verbatim
- transport failure: 502, or 504 on timeout, with a generic message
"""

import json
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Union

import pydantic
from pydantic import TypeAdapter

from shared.envelope import UniformResponse
from shared.errors import BackendError, GatewayException, SerializationError, TransportError
from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..transport import RawResponse
from .models import IdentityResult


@dataclass(frozen=True)
class GatewayResult:
    """Final answer for one inbound call."""
    status_code: int
    envelope: UniformResponse
    error: Optional[GatewayException] = None

    @property
    def success(self) -> bool:
        return self.envelope.success


@lru_cache(maxsize=None)
def _adapter_for(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


class ResponseTranslator:
    """Maps raw backend answers and gateway errors to envelopes."""

    def __init__(self, metrics: Optional[MetricsCollector] = None):
        self.metrics = metrics
        self.logger = get_logger("gateway.translator")

    def translate(self,
                  outcome: Union[RawResponse, TransportError],
                  shape: Any = Any,
                  success_message: str = "") -> GatewayResult:
        if isinstance(outcome, GatewayException):
            return self.from_error(outcome)

        if not outcome.is_success:
            return self.from_error(BackendError(outcome.service, outcome.status_code, outcome.text))

        try:
            data = self._decode(outcome, shape)
        except SerializationError as exc:
            return self.from_error(exc)

        # 204 cannot carry the envelope
        status_code = 200 if outcome.status_code == 204 else outcome.status_code
        return GatewayResult(status_code=status_code, envelope=UniformResponse.ok(success_message, data))

    def _decode(self, outcome: RawResponse, shape: Any) -> Any:
        if not outcome.content.strip():
            if shape is Any:
                return None
            raise SerializationError(outcome.service, details={"reason": "empty body"})

        try:
            data = json.loads(outcome.content)
        except ValueError as exc:
            self.logger.error("Backend returned invalid JSON", service=outcome.service, error=str(exc))
            raise SerializationError(outcome.service, details={"reason": "invalid json"}) from exc

        if shape is not Any:
            try:
                checked = _adapter_for(shape).validate_python(data)
            except pydantic.ValidationError as exc:
                self.logger.error(
                    "Backend payload does not match expected shape",
                    service=outcome.service,
                    errors=exc.error_count(),
                )
                raise SerializationError(outcome.service, details={"reason": "shape mismatch"}) from exc
            if isinstance(checked, IdentityResult):
                return checked.to_client()
        return data

    def from_error(self, exc: GatewayException) -> GatewayResult:
        """Envelope for an error raised or returned anywhere in the pipeline."""
        if self.metrics:
            self.metrics.record_error(exc.code)
        return GatewayResult(status_code=exc.status_code, envelope=exc.to_response(), error=exc)
