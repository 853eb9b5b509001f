"""
responses.py - Uniform JSON envelope and exception handlers.

Success:  {"success": true, "message": ..., "data": ..., "pagination": {...}}
Error:    {"success": false, "message": ..., "details": ..., "stack": ...}

`stack` is only included outside production. Server errors (5xx) are logged
at error level with the traceback; client errors (4xx) at warning without.
"""

import logging
import math
import traceback
from typing import TYPE_CHECKING, Any, Optional

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from hashyield.errors import AppError
from hashyield.storage.records import Record

if TYPE_CHECKING:
    from hashyield.config import Settings

logger = logging.getLogger("http")


def render(data: Any) -> Any:
    """Convert snapshots (and containers of them) to JSON-safe values."""
    if isinstance(data, Record):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [render(item) for item in data]
    if isinstance(data, dict):
        return {key: render(value) for key, value in data.items()}
    return data


def success(data: Any = None, message: str = "Success", status_code: int = 200,
            pagination: Optional[dict] = None) -> JSONResponse:
    body = {"success": True, "message": message}
    if data is not None:
        body["data"] = render(data)
    if pagination is not None:
        body["pagination"] = pagination
    return JSONResponse(status_code=status_code, content=body)


def created(data: Any, message: str = "Created") -> JSONResponse:
    return success(data, message, status_code=201)


def paginated(items, total: int, page: int, limit: int,
              message: str = "Success") -> JSONResponse:
    pagination = {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
    }
    return success(items, message, pagination=pagination)


def error_body(message: str, details: Any = None, stack: Optional[str] = None) -> dict:
    body = {"success": False, "message": message}
    if details is not None:
        body["details"] = details
    if stack:
        body["stack"] = stack
    return body


def register_exception_handlers(app: FastAPI, settings: "Settings"):

    def _stack(exc: BaseException) -> Optional[str]:
        if settings.is_production:
            return None
        return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    def _log(request: Request, status: int, message: str, exc: BaseException):
        if status >= 500:
            logger.error(
                "%s %s -> %d %s", request.method, request.url.path, status, message,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
        else:
            logger.warning("%s %s -> %d %s", request.method, request.url.path, status, message)

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        _log(request, exc.status_code, exc.message, exc)
        message = exc.message if exc.status_code < 500 or not settings.is_production else "Internal server error"
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(message, exc.details, _stack(exc) if exc.status_code >= 500 else None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        _log(request, 400, "Validation failed", exc)
        return JSONResponse(status_code=400, content=error_body("Validation failed", details))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        _log(request, exc.status_code, str(exc.detail), exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        _log(request, 500, "Unhandled exception", exc)
        return JSONResponse(
            status_code=500,
            content=error_body("Internal server error", stack=_stack(exc)),
        )
