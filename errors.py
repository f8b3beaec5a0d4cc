"""
API error types and the handlers that render them.

Every failure leaves the API in the same envelope as a success:
{"success": false, "message": "..."} with the matching HTTP status.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error carrying the HTTP status it maps to."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ApiError):
    # Duplicate email is reported as a plain 400, not 409
    status_code = status.HTTP_400_BAD_REQUEST


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "message": message}


def _field_name(loc) -> str:
    # loc looks like ("body", "email") or ("query", "minPrice"); a bare ("body",) has no field
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts)


def _is_missing(error: Dict[str, Any]) -> bool:
    # A blank string counts as not provided
    value = error.get("input")
    return error.get("type") == "missing" or (isinstance(value, str) and not value.strip())


def describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    missing = [e for e in errors if _is_missing(e)]
    if missing:
        names = [n for n in (_field_name(e["loc"]) for e in missing) if n]
        if not names:
            return "Please provide all required fields"
        return "Please provide all required fields: " + ", ".join(names)
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = first.get("msg", "Invalid value")
    # pydantic prefixes custom ValueError messages with "Value error, "
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    return f"{_field_name(first['loc']) or 'request'}: {msg}"


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def handle_api_error(request: Request, exc: ApiError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(describe_validation_error(exc)),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PyMongoError)
    async def handle_store_error(request: Request, exc: PyMongoError):
        logger.exception("Store error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Server error"),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Server error"),
        )
