"""
Bearer token propagation for Gateway.

The gateway never decodes or verifies tokens; the identity backend owns
that. This module only checks the header shape and copies the token onto
the headers of a single outbound call.
"""

from typing import Dict, Mapping, Optional

from shared.errors import Unauthorized
from shared.logging import get_logger

BEARER_PREFIX = "Bearer "


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from ``Bearer <token>``, or None if the header is unusable."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


class AuthPropagator:
    """Attaches the caller's bearer token to outbound calls that need identity."""

    def __init__(self):
        self.logger = get_logger("gateway.auth_propagator")

    def attach(self,
               outbound_headers: Mapping[str, str],
               inbound_authorization: Optional[str],
               required: bool = True) -> Dict[str, str]:
        """Return a fresh header mapping for one outbound call.

        Raises ``Unauthorized`` when identity is required and the inbound
        header is absent or not of the form ``Bearer <token>``.
        """
        headers = dict(outbound_headers)
        if not required:
            return headers

        token = extract_bearer_token(inbound_authorization)
        if token is None:
            self.logger.warning(
                "Missing or malformed bearer token",
                header_present=inbound_authorization is not None,
            )
            raise Unauthorized()

        headers["Authorization"] = f"{BEARER_PREFIX}{token}"
        return headers
