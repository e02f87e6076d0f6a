"""
Generic resource adapter for Gateway.

A backend's conventions are described by a table of ``Operation`` entries
(verb, path template, identity requirement, body model, field map, result
shape). ``ResourceAdapter.call`` turns one client call into an
``AdapterCall`` ready for dispatch, raising ``ValidationError`` before any
network activity when the input cannot be shaped.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type
from urllib.parse import quote

from pydantic import BaseModel

from shared.errors import ValidationError
from shared.logging import get_logger

from ..domain.models import parse_request
from ..transport import OutboundRequest

QueryParams = Tuple[Tuple[str, str], ...]


@dataclass(frozen=True)
class Operation:
    """One backend operation."""
    name: str
    method: str
    path: str
    success_message: str
    requires_identity: bool = False
    result_shape: Any = Any
    body_model: Optional[Type[BaseModel]] = None
    field_map: Mapping[str, str] = field(default_factory=dict)
    passthrough_body: bool = False


@dataclass(frozen=True)
class AdapterCall:
    """A shaped call: where it goes, what it sends, what it should get back."""
    service: str
    operation: Operation
    request: OutboundRequest

    @property
    def requires_identity(self) -> bool:
        return self.operation.requires_identity


class ResourceAdapter:
    """Encodes one backend's path, query and field conventions."""

    service: str = ""

    def __init__(self, operations: Iterable[Operation]):
        self.operations: Dict[str, Operation] = {op.name: op for op in operations}
        self.logger = get_logger(f"gateway.adapters.{self.service}")

    def operation(self, name: str) -> Operation:
        return self.operations[name]

    def build_path(self, operation: Operation, path_params: Optional[Mapping[str, Any]] = None) -> str:
        params = {}
        for key, value in (path_params or {}).items():
            text = "" if value is None else str(value).strip()
            if not text:
                raise ValidationError(f"Datos inválidos: {key} es requerido", details={"field": key})
            params[key] = quote(text, safe="")
        try:
            return operation.path.format(**params)
        except KeyError as exc:
            raise ValidationError(
                f"Datos inválidos: {exc.args[0]} es requerido",
                details={"field": exc.args[0]},
            ) from exc

    def shape_body(self, operation: Operation, payload: Any) -> Optional[Any]:
        """Map a client body onto the backend's field names."""
        if operation.body_model is not None:
            model = parse_request(operation.body_model, payload)
            data = model.model_dump(by_alias=True, exclude_none=True, mode="json")
            return {operation.field_map.get(key, key): value for key, value in data.items()}
        if operation.passthrough_body:
            if not isinstance(payload, dict):
                raise ValidationError("Datos inválidos: se esperaba un objeto JSON")
            return payload
        return None

    def build_query(self, operation: Operation, filters: Any) -> QueryParams:
        """Query parameters for list operations; none by default."""
        return ()

    def call(self,
             name: str,
             path_params: Optional[Mapping[str, Any]] = None,
             body: Any = None,
             filters: Any = None) -> AdapterCall:
        operation = self.operation(name)
        request = OutboundRequest(
            method=operation.method,
            path=self.build_path(operation, path_params),
            query=self.build_query(operation, filters),
            body=self.shape_body(operation, body),
            headers={"Accept": "application/json"},
        )
        self.logger.debug(
            "Adapter call shaped",
            operation=name,
            method=request.method,
            path=request.path,
            query=list(request.query),
        )
        return AdapterCall(service=self.service, operation=operation, request=request)
