"""
NoteDigest Backend: Route Dependencies
========================================

FastAPI dependencies shared by the routers:
    - get_owner_id: the opaque owner id the identity provider put in X-Owner-ID
    - get_ai_gateway: the AIGateway built by create_app() (app.state.ai_gateway)
"""

from typing import Optional

from fastapi import Header, Request

from notedigest.exceptions import ConfigurationError, MissingOwnerError
from notedigest.services.ai_gateway import AIGateway

OWNER_HEADER = "X-Owner-ID"


async def get_owner_id(
    x_owner_id: Optional[str] = Header(default=None, alias=OWNER_HEADER),
) -> str:
    """Trusted as-is; a missing or blank header is a 401."""
    if x_owner_id is None or not x_owner_id.strip():
        raise MissingOwnerError(OWNER_HEADER)
    return x_owner_id.strip()


def get_ai_gateway(request: Request) -> AIGateway:
    gateway = getattr(request.app.state, "ai_gateway", None)
    if gateway is None:
        raise ConfigurationError("AI gateway is not configured")
    return gateway
