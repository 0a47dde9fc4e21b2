"""
Middleware configuration for the application.
Includes Correlation ID setup, request logging and security headers.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from adminpanel.core.rate_limit import client_ip

logger = structlog.get_logger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

# paths that are never logged
QUIET_PATHS = {"/health"}


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request once it finishes, with status and timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start = time.perf_counter()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": client_ip(request),
        }

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", duration_ms=_elapsed_ms(start), **fields)
            raise

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "Request completed",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start),
            **fields,
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add clickjacking/sniffing/referrer headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def setup_middleware(app):
    """Setup all middleware for the application."""

    # Starlette runs middleware LIFO: the correlation id is added last so it wraps everything
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
