from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from notes_saas.core.config import IS_PROD
from notes_saas.core.responses import error_body

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base for every error that maps onto the JSON envelope."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "BAD_REQUEST"
    message = "Bad request"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.message = message or self.message
        self.code = code or self.code
        if status_code is not None:
            self.status_code = status_code
        self.headers = headers
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Validation failed"


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTHENTICATION_REQUIRED"
    message = "Authentication required"


class AuthorizationError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "INSUFFICIENT_PERMISSIONS"
    message = "Insufficient permissions"


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class QuotaExceededError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "NOTE_LIMIT_REACHED"
    message = "Note limit reached. Upgrade to Pro for unlimited notes."


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "DUPLICATE_VALUE"
    message = "Duplicate field value entered"


class AlreadyOnPlanError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "ALREADY_ON_PLAN"
    message = "Tenant is already on the Pro plan"


class InternalError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    message = "Internal server error"


def _format_validation_errors(errors: list[dict[str, Any]]) -> list[dict[str, Any]]:
    formatted = []
    for item in errors:
        location = [str(part) for part in item.get("loc", ()) if part != "body"]
        formatted.append({"field": ".".join(location), "message": item.get("msg", "invalid")})
    return formatted


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error("request failed code=%s", exc.code, extra={"code": exc.code, "endpoint": request.url.path})
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, code=exc.code),
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError):
        details = _format_validation_errors(exc.errors())
        message = "; ".join(f"{d['field']}: {d['message']}" if d["field"] else d["message"] for d in details)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(message or ValidationError.message, code=ValidationError.code, errors=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = f"Route {request.url.path} not found"
            code = "ROUTE_NOT_FOUND"
        else:
            message = str(exc.detail)
            code = "HTTP_ERROR"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, code=code),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(IntegrityError)
    async def _integrity_error(request: Request, exc: IntegrityError):
        logger.warning("integrity error on %s", request.url.path, extra={"code": ConflictError.code})
        return JSONResponse(
            status_code=ConflictError.status_code,
            content=error_body(ConflictError.message, code=ConflictError.code),
        )

    @app.exception_handler(Exception)
    async def _unhandled_error(request: Request, exc: Exception):
        logger.exception("unhandled error on %s %s", request.method, request.url.path)
        extra: dict[str, Any] = {}
        if not IS_PROD:
            extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body(InternalError.message, code=InternalError.code, **extra),
        )
