"""
Credential extraction for the booking API.

Tokens are opaque here: they are never decoded, only forwarded to the
booking backend as bearer credentials. Admin endpoints refuse to run
without one so that no unauthenticated backend call is ever attempted.
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from ....domain.errors import NotAuthenticatedError
from ....domain.value_objects.auth import ClientContext
from ....infrastructure.logging import get_correlation_id


# auto_error=False so a missing header reaches our own 401 handler
security = HTTPBearer(auto_error=False)


async def get_client_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> ClientContext:
    """
    FastAPI dependency building the request's client context.

    Args:
        credentials: Bearer credentials, if the request carried any

    Returns:
        ClientContext: Possibly anonymous context for outbound calls
    """
    token = credentials.credentials if credentials else None
    return ClientContext(token=token, correlation_id=get_correlation_id())


async def require_client_context(
    context: ClientContext = Depends(get_client_context)
) -> ClientContext:
    """
    Dependency for admin endpoints.

    Raises:
        NotAuthenticatedError: no bearer token was supplied (mapped to 401)
    """
    if not context.is_authenticated:
        raise NotAuthenticatedError()
    return context
