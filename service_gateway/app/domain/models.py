"""
Payload models for Gateway.

Request models carry the gateway's own field names (what clients send).
Result models describe what each backend answers, validated by that
backend's naming. Identity results are re-serialized in the gateway's
camelCase; ticket records are checked and passed through untouched.
"""

import re
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Optional, Type, TypeVar

import pydantic
from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from shared.errors import ValidationError

M = TypeVar("M", bound=BaseModel)

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class TicketType(str, Enum):
    """Ticket direction."""
    IDA = "Ida"
    VUELTA = "Vuelta"


class TicketState(str, Enum):
    """Ticket lifecycle state. Caducado never returns to Activo (enforced by the ticketing backend)."""
    ACTIVO = "Activo"
    USADO = "Usado"
    CADUCADO = "Caducado"


def _check_email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValueError("Formato de email inválido")
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


def _check_price(value: Any) -> Any:
    # bool is an int subclass; "12" would be coerced by pydantic
    if value is not None and (isinstance(value, bool) or not isinstance(value, (int, float))):
        raise ValueError("El precio debe ser numérico")
    return value


Email = Annotated[str, Field(min_length=1), AfterValidator(_check_email)]
Price = Annotated[float, BeforeValidator(_check_price), Field(gt=0, allow_inf_nan=False)]
RequiredText = Annotated[str, BeforeValidator(_strip), Field(min_length=1)]


# ---- identity ----

class LoginRequest(BaseModel):
    email: Email
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    full_name: Optional[str] = Field(default=None, alias="fullName")
    email: Email
    password: str = Field(min_length=8)


class IdentityResult(BaseModel):
    """Identity backend answer, validated by snake_case and dumped in camelCase."""
    model_config = ConfigDict(extra="allow")

    def to_client(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class LoginResult(IdentityResult):
    access_token: str = Field(serialization_alias="accessToken")
    token_type: str = Field(default="bearer", serialization_alias="tokenType")
    user_id: str = Field(serialization_alias="userId")
    email: str
    is_admin: bool = Field(serialization_alias="isAdmin")


class SessionInfo(IdentityResult):
    user_id: str = Field(serialization_alias="userId")
    email: str
    is_admin: bool = Field(serialization_alias="isAdmin")
    expires_at: str = Field(serialization_alias="expiresAt")


class UserRecord(IdentityResult):
    id: str
    full_name: Optional[str] = Field(default=None, serialization_alias="fullName")
    email: Optional[str] = None
    is_active: Optional[bool] = Field(default=None, serialization_alias="isActive")
    created_at: datetime = Field(serialization_alias="createdAt")
    is_admin: bool = Field(serialization_alias="isAdmin")


# ---- tickets ----

class TicketCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: RequiredText = Field(alias="userId")
    type: TicketType
    price: Price


class TicketUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    issue_date: Optional[datetime] = Field(default=None, alias="issueDate")
    type: Optional[TicketType] = None
    state: Optional[TicketState] = None
    price: Optional[Price] = None


class TicketFilter(BaseModel):
    """Optional filters of a ticket listing."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: Optional[str] = Field(default=None, alias="userId")
    issue_date: Optional[date] = Field(default=None, alias="date")
    state: Optional[TicketState] = None

    @field_validator("user_id", "state", mode="before")
    @classmethod
    def blank_is_absent(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("issue_date", mode="before")
    @classmethod
    def calendar_day(cls, value):
        if value is None or isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValueError("La fecha debe tener formato yyyy-MM-dd")
        value = value.strip()
        if not value:
            return None
        if not _DAY_RE.match(value):
            raise ValueError("La fecha debe tener formato yyyy-MM-dd")
        return value


class TicketRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    idUser: Optional[str] = None
    type: Optional[str] = None
    state: Optional[str] = None
    issueDate: datetime
    price: float


# ---- helpers ----

def _format_errors(exc: pydantic.ValidationError) -> List[Dict[str, str]]:
    errors = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        errors.append({"field": field, "message": error.get("msg", "invalid")})
    return errors


def parse_request(model: Type[M], payload: Any) -> M:
    """Validate a client payload, raising the gateway's ``ValidationError``."""
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Datos inválidos: se esperaba un objeto JSON")
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as exc:
        errors = _format_errors(exc)
        summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
        raise ValidationError(f"Datos inválidos: {summary}", details={"errors": errors}) from exc
