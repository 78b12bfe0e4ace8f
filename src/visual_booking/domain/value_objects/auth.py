"""Client credential context for outbound backend calls."""

from dataclasses import dataclass
from typing import Dict, Optional

from ..errors import NotAuthenticatedError


@dataclass(frozen=True)
class ClientContext:
    """Request-scoped credentials handed to every admin repository call.

    The token is opaque here; it is only forwarded as a bearer credential.
    """
    token: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        """Check if a non-empty token is present."""
        return bool(self.token and self.token.strip())

    def require_token(self) -> str:
        """Get the token, failing before any request is made."""
        if not self.is_authenticated:
            raise NotAuthenticatedError()
        return self.token.strip()

    def auth_headers(self) -> Dict[str, str]:
        """Get the Authorization header for this context."""
        return {"Authorization": f"Bearer {self.require_token()}"}

    @classmethod
    def anonymous(cls, correlation_id: Optional[str] = None) -> "ClientContext":
        """Context for public calls that carry no credentials."""
        return cls(token=None, correlation_id=correlation_id)
