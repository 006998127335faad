"""
Service error taxonomy and the FastAPI handlers that render it.

Services raise these instead of HTTPException so the same rules apply whether
they are called from a router, a background task or a test. Every error maps
to one HTTP status and renders as ``{"error", "message", ["errors"]}``.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from registrar.core.logging import logger


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Server error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> Dict[str, Any]:
        return {"error": self.error, "message": self.message}


class ValidationError(ServiceError):
    """Malformed or missing input; the caller can fix it and resubmit."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Validation failed"

    def __init__(
        self,
        message: str = "Please check your input data",
        errors: Optional[List[Dict[str, str]]] = None,
    ):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, param: str, msg: str) -> "ValidationError":
        return cls(msg, errors=[{"param": param, "msg": msg}])

    def to_body(self) -> Dict[str, Any]:
        body = super().to_body()
        if self.errors:
            body["errors"] = self.errors
        return body


class InvalidTransitionError(ValidationError):
    """Requested status change is not allowed from the current status."""

    error = "Invalid status transition"


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    error = "Duplicate request"


class AuthorizationError(ServiceError):
    """Role or department mismatch. Never says whether the resource exists."""

    status_code = status.HTTP_403_FORBIDDEN
    error = "Access denied"

    def __init__(self, message: str = "You do not have access to this resource"):
        super().__init__(message)


class RateLimitError(ServiceError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error = "Request limit exceeded"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class UnexpectedError(ServiceError):
    """Persistence or transport failure. Details stay in the server log."""

    error = "Server error"

    def __init__(self, message: str = "An unexpected error occurred. Please try again later."):
        super().__init__(message)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code} "
            f"{exc.__class__.__name__}: {exc.message}"
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append({"param": ".".join(location) or "body", "msg": err.get("msg", "Invalid value")})
    body = ValidationError(errors=errors).to_body()
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    error = "Authentication failed" if exc.status_code == status.HTTP_401_UNAUTHORIZED else "Request failed"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": error, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.opt(exception=exc).error(
        f"Unhandled error on {request.method} {request.url.path}: {exc!r}"
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=UnexpectedError().to_body(),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers to the application."""
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
