"""Middleware module for the booking API."""

from .auth import get_client_context, require_client_context
from .logging import create_logging_middleware, RequestResponseLoggingMiddleware

__all__ = [
    "get_client_context",
    "require_client_context",
    "create_logging_middleware",
    "RequestResponseLoggingMiddleware"
]
