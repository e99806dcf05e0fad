from __future__ import annotations

import logging
import re
import traceback
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from respos.core.config import IS_PROD

logger = logging.getLogger(__name__)

_UNIQUE_MARKERS = ("unique", "duplicate")
_FOREIGN_KEY_MARKERS = ("foreign key",)

_SQLITE_TARGET = re.compile(r"constraint failed: ([\w.]+)", re.IGNORECASE)
_PG_KEY_TARGET = re.compile(r"Key \(([^=]+)\)=")
_PG_CONSTRAINT_TARGET = re.compile(r"constraint \"([^\"]+)\"")

GENERIC_DUPLICATE_MESSAGE = "Duplicate entry found"


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    error_type = "AppError"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        *,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details or {}


class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    error_type = "ValidationError"


class AuthError(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    error_type = "AuthError"


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    error_type = "NotFoundError"


class ConflictError(AppError):
    # 400 rather than 409, clients already depend on it
    status_code = 400
    code = "UNIQUE_VIOLATION"
    error_type = "ConflictError"


class DatabaseError(AppError):
    status_code = 500
    code = "DATABASE_ERROR"
    error_type = "DatabaseError"


def _integrity_kind(exc: IntegrityError) -> str:
    orig = getattr(exc, "orig", None)
    pgcode = getattr(orig, "pgcode", None)
    if pgcode == "23505":
        return "unique"
    if pgcode == "23503":
        return "foreign_key"
    text = str(orig or exc).lower()
    if any(marker in text for marker in _UNIQUE_MARKERS):
        return "unique"
    if any(marker in text for marker in _FOREIGN_KEY_MARKERS):
        return "foreign_key"
    return "unknown"


def _violated_target(exc: IntegrityError) -> Optional[str]:
    """Table/column (SQLite) or key/constraint text (PostgreSQL) named by the driver, if any."""
    text = str(getattr(exc, "orig", None) or exc)
    match = _SQLITE_TARGET.search(text) or _PG_KEY_TARGET.search(text) or _PG_CONSTRAINT_TARGET.search(text)
    return match.group(1).lower() if match else None


def translate_integrity_error(
    exc: IntegrityError,
    duplicate_message: str = GENERIC_DUPLICATE_MESSAGE,
    *,
    columns: Optional[Iterable[str]] = None,
) -> AppError:
    """Map a constraint violation onto the error taxonomy.

    With ``columns`` the duplicate message is used only when the violated
    constraint names one of them; any other unique clash gets the generic text.
    """
    kind = _integrity_kind(exc)
    if kind == "unique":
        target = _violated_target(exc)
        if columns is not None and target is not None and not any(column in target for column in columns):
            return ConflictError(GENERIC_DUPLICATE_MESSAGE, details={"constraint": target})
        return ConflictError(duplicate_message)
    if kind == "foreign_key":
        return ValidationError("Referenced record not found", code="FOREIGN_KEY_VIOLATION")
    return DatabaseError("Database error occurred")


def _error_payload(
    request: Request,
    *,
    message: str,
    status_code: int,
    error_type: str,
    code: str,
    exc: BaseException,
    details: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    body: dict[str, Any] = {
        "message": message,
        "status": status_code,
        "type": error_type,
        "code": code,
        "path": request.url.path,
        "method": request.method,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if not IS_PROD:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        body["details"] = details or {}
    return {"error": body}


def _respond(request: Request, exc: BaseException, **fields: Any) -> JSONResponse:
    status_code = fields["status_code"]
    log = logger.error if status_code >= 500 else logger.warning
    log(
        "request failed: %s",
        fields["message"],
        exc_info=exc if status_code >= 500 else None,
        extra={
            "endpoint": request.url.path,
            "method": request.method,
            "status_code": status_code,
            "error_code": fields["code"],
        },
    )
    headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(request, exc=exc, **fields),
        headers=headers,
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return _respond(
        request,
        exc,
        message=exc.message,
        status_code=exc.status_code,
        error_type=exc.error_type,
        code=exc.code,
        details=exc.details,
    )


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    return _respond(
        request,
        exc,
        message=message,
        status_code=400,
        error_type="ValidationError",
        code="VALIDATION_ERROR",
        details={"errors": [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in errors]},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _respond(
        request,
        exc,
        message=str(exc.detail),
        status_code=exc.status_code,
        error_type="HTTPException",
        code="NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR",
    )


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    translated = translate_integrity_error(exc)
    return _respond(
        request,
        exc,
        message=translated.message,
        status_code=translated.status_code,
        error_type=translated.error_type,
        code=translated.code,
    )


async def no_result_handler(request: Request, exc: NoResultFound) -> JSONResponse:
    return _respond(
        request,
        exc,
        message="Record not found",
        status_code=404,
        error_type="NotFoundError",
        code="NOT_FOUND",
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    return _respond(
        request,
        exc,
        message="Database error occurred",
        status_code=500,
        error_type="DatabaseError",
        code="DATABASE_ERROR",
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return _respond(
        request,
        exc,
        message="Internal Server Error",
        status_code=500,
        error_type=type(exc).__name__,
        code="INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(NoResultFound, no_result_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
