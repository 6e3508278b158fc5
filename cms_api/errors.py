"""
Error taxonomy and the exception handlers that render it.

Services raise the ``ApiError`` subclasses below; nothing in the service
layer builds HTTP responses.  ``register_exception_handlers`` wires the
handlers into the FastAPI app so every failure, expected or not, leaves
the process as the uniform envelope::

    {"success": false, "message": "...", "errors": [...], "error": "..."}

``error`` carries the raw exception text and is only populated when the
application runs with ``APP_ENV=development``.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from cms_api.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str, errors: list[dict] | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = errors or []
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ApiError):
    status_code = 400


class NotFoundError(ApiError):
    status_code = 404


class ConflictError(ApiError):
    status_code = 409


class UpstreamError(ApiError):
    """The remote media service failed or returned something unusable."""

    status_code = 500


def error_body(message: str, errors: list[dict] | None = None, exc: Exception | None = None) -> dict:
    body: dict = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if exc is not None and settings.is_development:
        body["error"] = str(exc)
    return body


def _conflict_field(exc: IntegrityError) -> str | None:
    # Postgres: 'Key (slug)=(x) already exists'; SQLite: 'UNIQUE constraint failed: articles.slug'
    text = str(exc.orig) if exc.orig is not None else str(exc)
    if "UNIQUE constraint failed:" in text:
        column = text.split("UNIQUE constraint failed:", 1)[1].strip().split(",")[0]
        return column.rsplit(".", 1)[-1]
    if "Key (" in text:
        return text.split("Key (", 1)[1].split(")", 1)[0]
    return None


def conflict_from_integrity(exc: IntegrityError, message: str | None = None) -> ConflictError:
    """Translate a storage uniqueness violation into a ConflictError."""
    field = _conflict_field(exc)
    if message is None:
        message = f"{field.capitalize()} already exists" if field else "Resource already exists"
    errors = [{"field": field, "message": message}] if field else None
    return ConflictError(message, errors=errors)


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, exc.errors, exc.__cause__),
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part not in ("body", "query", "path", "form")),
            "message": err["msg"],
        }
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content=error_body("Validation Error", errors))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    conflict = conflict_from_integrity(exc)
    return JSONResponse(status_code=409, content=error_body(conflict.message, conflict.errors, exc))


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404 and exc.detail == "Not Found":
        message = f"Route not found: {request.method} {request.url.path}"
    return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body("Internal server error", exc=exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
