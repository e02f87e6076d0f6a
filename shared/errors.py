"""
Shared error handling for the Perla Metro gateway.
"""

from enum import Enum
from typing import Dict, Any, Optional

from shared.envelope import UniformResponse


class GatewayException(Exception):
    """Base exception for gateway errors."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self) -> UniformResponse:
        """Convert to the client-facing envelope."""
        return UniformResponse.fail(self.message)


class ConfigurationError(GatewayException):
    """Missing or malformed configuration; fatal at startup."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details, status_code=500)


class ValidationError(GatewayException):
    """Request rejected locally before any network call."""

    def __init__(self, message: str = "Datos inválidos", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details, status_code=400)


class Unauthorized(GatewayException):
    """Identity required but the bearer token is absent or malformed."""

    def __init__(self, message: str = "Token de autorización requerido", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNAUTHORIZED", message, details, status_code=401)


class TransportErrorKind(str, Enum):
    """Connection-level failure classes."""
    TIMEOUT = "timeout"
    CONNECTION_REFUSED = "connection_refused"
    DNS_FAILURE = "dns_failure"
    OTHER = "other"


class TransportError(GatewayException):
    """Outbound call failed below HTTP (timeout, refused, DNS...).

    The message is generic on purpose: details such as the backend address
    stay in ``details`` and in the logs.
    """

    def __init__(self, kind: TransportErrorKind, service: str, details: Optional[Dict[str, Any]] = None):
        self.kind = kind
        self.service = service
        if kind == TransportErrorKind.TIMEOUT:
            message = "Tiempo de espera agotado al contactar el servicio"
            status_code = 504
        else:
            message = "Servicio no disponible"
            status_code = 502
        super().__init__("TRANSPORT_ERROR", message, details, status_code=status_code)


class BackendError(GatewayException):
    """Backend answered with a non-2xx status; passed through verbatim."""

    def __init__(self, service: str, status_code: int, body: str):
        self.service = service
        self.body = body
        message = body if body else f"El servicio respondió con estado {status_code}"
        super().__init__("BACKEND_ERROR", message, {"service": service}, status_code=status_code)


class SerializationError(GatewayException):
    """Backend 2xx payload could not be parsed into the expected shape."""

    def __init__(self, service: str, details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__(
            "SERIALIZATION_ERROR",
            "Respuesta inválida del servicio",
            details,
            status_code=502,
        )


class RequestCancelled(GatewayException):
    """Inbound client went away while the outbound call was in flight."""

    def __init__(self, service: str):
        self.service = service
        super().__init__("REQUEST_CANCELLED", "Solicitud cancelada por el cliente", status_code=499)
