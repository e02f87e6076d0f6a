"""
Mock identity service providing login, registration, session and user lookup.
"""

import uuid
import jwt
from typing import Dict, Any, Optional
from datetime import datetime, timedelta, timezone
from fastapi import FastAPI, HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from shared.logging import get_logger


class LoginBody(BaseModel):
    email: str
    password: str


class RegisterBody(BaseModel):
    full_name: Optional[str] = None
    email: str
    password: str


class MockUsersServer:
    """Mock identity service implementation."""

    def __init__(self, port: int = 8001, secret: str = "mock-secret"):
        self.port = port
        self.secret = secret
        self.logger = get_logger("mock.users")
        self.app = FastAPI(title="Mock Users Service", version="1.0.0")

        # Mock users keyed by id
        self.users: Dict[str, Dict[str, Any]] = {
            "12345": {
                "id": "12345",
                "full_name": "Ana Pérez",
                "email": "ana.perez@perlametro.cl",
                "password": "TestPass123!",
                "is_active": True,
                "created_at": "2025-01-15T12:00:00+00:00",
                "is_admin": False,
            },
            "admin": {
                "id": "admin",
                "full_name": "Administrador",
                "email": "admin@perlametro.cl",
                "password": "AdminPass123!",
                "is_active": True,
                "created_at": "2025-01-01T00:00:00+00:00",
                "is_admin": True,
            },
        }

        self._setup_routes()

    def _setup_routes(self):
        """Set up mock identity routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {"service": "mock-users", "version": "1.0.0"}

        @self.app.post("/api/v1/auth/login")
        async def login(body: LoginBody):
            """Exchange credentials for a token."""
            user = self._find_by_email(body.email)
            if user is None or user["password"] != body.password:
                raise HTTPException(status_code=401, detail="Credenciales inválidas")

            return {
                "access_token": self._issue_token(user),
                "token_type": "bearer",
                "user_id": user["id"],
                "email": user["email"],
                "is_admin": user["is_admin"],
            }

        @self.app.post("/api/v1/users/", status_code=201)
        async def register(body: RegisterBody):
            """Register a new user."""
            if self._find_by_email(body.email) is not None:
                raise HTTPException(status_code=409, detail="El email ya está registrado")

            user_id = str(uuid.uuid4())
            self.users[user_id] = {
                "id": user_id,
                "full_name": body.full_name,
                "email": body.email,
                "password": body.password,
                "is_active": True,
                "created_at": datetime.now(timezone.utc).isoformat(),
                "is_admin": False,
            }
            self.logger.info("Mock user registered", user_id=user_id)
            return self._public(self.users[user_id])

        @self.app.get("/api/v1/auth/session")
        async def session(credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer())):
            """Describe the session behind a token."""
            payload = self._decode(credentials.credentials)
            user = self.users.get(payload.get("sub"))
            if user is None:
                raise HTTPException(status_code=401, detail="Usuario inválido")

            return {
                "user_id": user["id"],
                "email": user["email"],
                "is_admin": user["is_admin"],
                "expires_at": datetime.fromtimestamp(payload["exp"], tz=timezone.utc).isoformat(),
            }

        @self.app.get("/api/v1/users/{user_id}")
        async def get_user(user_id: str, credentials: HTTPAuthorizationCredentials = Depends(HTTPBearer())):
            """Get user by ID."""
            self._decode(credentials.credentials)
            if user_id not in self.users:
                raise HTTPException(status_code=404, detail="Usuario no encontrado")

            return self._public(self.users[user_id])

    def _find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        for user in self.users.values():
            if user["email"].lower() == email.lower():
                return user
        return None

    def _public(self, user: Dict[str, Any]) -> Dict[str, Any]:
        """User record without the password."""
        return {key: value for key, value in user.items() if key != "password"}

    def _issue_token(self, user: Dict[str, Any]) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user["id"],
            "email": user["email"],
            "is_admin": user["is_admin"],
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(hours=1)).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm="HS256")

    def _decode(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=["HS256"])
        except jwt.InvalidTokenError:
            raise HTTPException(status_code=401, detail="Token inválido")


def create_app():
    """Create mock identity application."""
    server = MockUsersServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(create_app(), host="0.0.0.0", port=8001)
