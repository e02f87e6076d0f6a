"""
Uniform response envelope returned by the gateway for every call.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class UniformResponse(BaseModel, Generic[T]):
    """Standard `{success, message, data}` response format."""

    success: bool
    message: str = ""
    data: Optional[T] = None

    @classmethod
    def ok(cls, message: str, data: Any = None) -> "UniformResponse":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, message: str) -> "UniformResponse":
        return cls(success=False, message=message, data=None)
