# middleware.py
"""
Middleware for security headers and request logging.
"""
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from registrar.core.logging import logger

SLOW_REQUEST_SECONDS = 2.0

# Responses worth a warning: auth failures, hidden resources and throttled submissions.
WATCHED_STATUS_CODES = frozenset({401, 403, 404, 429})


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=()"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class AuditMiddleware(BaseHTTPMiddleware):
    """Log every request with its status, duration and client address."""

    async def dispatch(self, request: Request, call_next: Callable):
        started = time.perf_counter()
        client_ip = request.client.host if request.client else None

        response = await call_next(request)
        duration = time.perf_counter() - started

        logger.info(
            f"Request: {request.method} {request.url.path} | "
            f"Status: {response.status_code} | "
            f"Duration: {duration:.3f}s | "
            f"IP: {client_ip}"
        )

        if duration > SLOW_REQUEST_SECONDS:
            logger.warning(
                f"Slow request detected: {request.method} {request.url.path} | "
                f"Duration: {duration:.3f}s | IP: {client_ip}"
            )

        if response.status_code in WATCHED_STATUS_CODES:
            logger.warning(
                f"Security status code: {response.status_code} | "
                f"Path: {request.url.path} | IP: {client_ip}"
            )

        return response
