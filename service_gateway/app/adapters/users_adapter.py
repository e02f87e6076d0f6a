"""
Identity backend adapter for Gateway.

The identity backend speaks snake_case; clients register with
``fullName``, which is renamed to ``full_name`` on the way out.
"""

from ..domain.models import LoginRequest, LoginResult, RegisterRequest, SessionInfo, UserRecord
from .base import Operation, ResourceAdapter


class UsersAdapter(ResourceAdapter):
    """Adapter for login, registration, session and user lookup."""

    service = "users"

    def __init__(self):
        super().__init__([
            Operation(
                name="login",
                method="POST",
                path="/api/v1/auth/login",
                success_message="Login exitoso",
                result_shape=LoginResult,
                body_model=LoginRequest,
            ),
            Operation(
                name="register",
                method="POST",
                path="/api/v1/users/",
                success_message="Usuario registrado exitosamente",
                result_shape=UserRecord,
                body_model=RegisterRequest,
                field_map={"fullName": "full_name"},
            ),
            Operation(
                name="session",
                method="GET",
                path="/api/v1/auth/session",
                success_message="Información de sesión obtenida exitosamente",
                requires_identity=True,
                result_shape=SessionInfo,
            ),
            Operation(
                name="get",
                method="GET",
                path="/api/v1/users/{id}",
                success_message="Usuario obtenido exitosamente",
                requires_identity=True,
                result_shape=UserRecord,
            ),
        ])
