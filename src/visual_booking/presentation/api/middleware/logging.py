"""HTTP request/response logging middleware for FastAPI."""

import json
import time
import logging
from typing import Any, Callable, Optional, Set
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ....infrastructure.logging import (
    generate_correlation_id,
    set_correlation_id,
    clear_correlation_id,
    get_logger
)

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"

# Headers to exclude from logging (sensitive information)
EXCLUDED_HEADERS = {
    'authorization',
    'cookie',
    'set-cookie',
    'x-api-key',
    'proxy-authorization',
}

# Customer contact and payment fields never written to logs
REDACTED_FIELDS = {
    'guest_phone', 'guestPhone', 'phone', 'phone_number',
    'guest_email', 'guestEmail', 'email',
    'account_number', 'gcashNumber', 'gcash_number',
}

DEFAULT_EXCLUDED_PATHS = {'/health', '/docs', '/redoc', '/openapi.json', '/favicon.ico'}


def redact(value: Any) -> Any:
    """Replace contact and payment fields in a decoded JSON body."""
    if isinstance(value, dict):
        return {
            k: "[REDACTED]" if k in REDACTED_FIELDS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, list):
        return [redact(v) for v in value]
    return value


class RequestResponseLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests and responses with correlation IDs."""

    def __init__(
        self,
        app: ASGIApp,
        log_request_body: bool = False,
        max_body_size: int = 2048,
        exclude_paths: Optional[Set[str]] = None
    ):
        """
        Initialize the logging middleware.

        Args:
            app: The ASGI application
            log_request_body: Whether to log (redacted) JSON request bodies
            max_body_size: Maximum body size to log in bytes
            exclude_paths: Set of paths to exclude from logging
        """
        super().__init__(app)
        self.log_request_body = log_request_body
        self.max_body_size = max_body_size
        self.exclude_paths = exclude_paths or DEFAULT_EXCLUDED_PATHS

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process the request and response with logging."""
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)

        if request.url.path in self.exclude_paths:
            try:
                response = await call_next(request)
                response.headers[CORRELATION_HEADER] = correlation_id
                return response
            finally:
                clear_correlation_id()

        start_time = time.perf_counter()
        try:
            await self._log_request(request)
            response = await call_next(request)
            duration_ms = (time.perf_counter() - start_time) * 1000
            response.headers[CORRELATION_HEADER] = correlation_id
            self._log_response(request, response, duration_ms)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.url.path}",
                extra={
                    "request_method": request.method,
                    "request_path": request.url.path,
                    "duration_ms": round(duration_ms, 2),
                    "error": str(exc),
                    "error_type": type(exc).__name__
                },
                exc_info=True
            )
            raise

        finally:
            clear_correlation_id()

    async def _log_request(self, request: Request) -> None:
        """Log the incoming HTTP request."""
        extra = {
            "request_method": request.method,
            "request_path": request.url.path,
            "request_query": str(request.query_params) if request.query_params else None,
            "request_headers": self._sanitize_headers(dict(request.headers)),
            "client_host": request.client.host if request.client else "unknown",
            "authenticated": "authorization" in request.headers,
        }
        if self.log_request_body:
            extra["request_body"] = await self._get_request_body(request)

        logger.info(f"HTTP Request: {request.method} {request.url.path}", extra=extra)

    def _log_response(self, request: Request, response: Response, duration_ms: float) -> None:
        """Log the HTTP response."""
        if response.status_code >= 500:
            log_level = logging.ERROR
        elif response.status_code >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            f"HTTP Response: {request.method} {request.url.path} -> {response.status_code} ({duration_ms:.2f}ms)",
            extra={
                "request_method": request.method,
                "request_path": request.url.path,
                "response_status": response.status_code,
                "duration_ms": round(duration_ms, 2),
            }
        )

    def _sanitize_headers(self, headers: dict) -> dict:
        """Remove sensitive headers from logging."""
        return {
            key: "[REDACTED]" if key.lower() in EXCLUDED_HEADERS else value
            for key, value in headers.items()
        }

    async def _get_request_body(self, request: Request) -> Optional[Any]:
        """Get a redacted JSON request body for logging."""
        if 'application/json' not in request.headers.get('content-type', '').lower():
            return None
        body = await request.body()
        if len(body) > self.max_body_size:
            return f"[BODY_TOO_LARGE:{len(body)}_bytes]"
        try:
            return redact(json.loads(body or b"null"))
        except ValueError:
            return "[INVALID_JSON]"


def create_logging_middleware(
    log_request_body: bool = False,
    max_body_size: int = 2048,
    exclude_paths: Optional[Set[str]] = None
) -> Callable[[ASGIApp], RequestResponseLoggingMiddleware]:
    """
    Factory function to create logging middleware with configuration.

    Args:
        log_request_body: Whether to log redacted request bodies
        max_body_size: Maximum body size to log in bytes
        exclude_paths: Set of paths to exclude from logging

    Returns:
        Middleware factory function
    """
    def middleware_factory(app: ASGIApp) -> RequestResponseLoggingMiddleware:
        return RequestResponseLoggingMiddleware(
            app=app,
            log_request_body=log_request_body,
            max_body_size=max_body_size,
            exclude_paths=exclude_paths
        )

    return middleware_factory
