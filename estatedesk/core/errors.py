from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("security")


class ServiceError(Exception):
    """Base class for service-layer exceptions mapped to HTTP responses.

    Each subclass pins an HTTP status and a stable machine-readable code;
    ``errors`` carries field-level messages for validation failures.
    """

    status_code: int = 400
    code: str = "bad_request"

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[dict[str, list[str]]] = None,
        headers: Optional[dict[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or {}
        self.headers = headers or {}


class ValidationFailed(ServiceError):
    status_code = 422
    code = "validation_error"


class NotFound(ServiceError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, identifier: Any) -> None:
        super().__init__(f"{entity} not found: {identifier}")
        self.entity = entity
        self.identifier = identifier


class Conflict(ServiceError):
    status_code = 409
    code = "conflict"


class InvalidCredential(ServiceError):
    status_code = 401
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid email or password") -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class TokenRejected(ServiceError):
    status_code = 401
    code = "unauthorized"

    def __init__(self, message: str = "Invalid authentication credentials") -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class SessionExpired(TokenRejected):
    code = "session_expired"


class Forbidden(ServiceError):
    status_code = 403
    code = "forbidden"


class AccountLocked(ServiceError):
    status_code = 423
    code = "account_locked"


class RateLimited(ServiceError):
    status_code = 429
    code = "rate_limited"

    def __init__(self, message: str, *, retry_after_seconds: int) -> None:
        retry_after = max(int(retry_after_seconds), 1)
        super().__init__(message, headers={"Retry-After": str(retry_after)})
        self.retry_after_seconds = retry_after


def _error_response(exc: ServiceError) -> JSONResponse:
    content: dict[str, Any] = {"detail": exc.message, "code": exc.code}
    if exc.errors:
        content["errors"] = exc.errors
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers or None)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        extra = {
            "path": request.url.path,
            "method": request.method,
            "status_code": exc.status_code,
        }
        if isinstance(exc, Forbidden):
            security_logger.warning("authorization_denied: %s", exc.message, extra=extra)
        elif exc.status_code >= 500:
            logger.error("service_error: %s", exc.message, extra=extra)
        else:
            logger.info("service_error: %s", exc.message, extra=extra)
        return _error_response(exc)
