"""
Request and response values exchanged with the dispatcher.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple


@dataclass(frozen=True)
class OutboundRequest:
    """One call to a backend, built per inbound request and then discarded."""
    method: str
    path: str
    query: Tuple[Tuple[str, str], ...] = ()
    body: Optional[Any] = None
    headers: Mapping[str, str] = field(default_factory=dict)

    def with_headers(self, headers: Mapping[str, str]) -> "OutboundRequest":
        return OutboundRequest(
            method=self.method,
            path=self.path,
            query=self.query,
            body=self.body,
            headers=dict(headers),
        )


@dataclass(frozen=True)
class RawResponse:
    """Backend answer before translation."""
    service: str
    status_code: int
    content: bytes = b""
    content_type: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")
