"""
Hex Tactics Engine - Error Handlers
Formats every exception raised by a route into a structured JSON response.
"""
import traceback
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from hextactics.core.errors import GameError, ErrorCode

logger = logging.getLogger(__name__)


HTTP_STATUS_TO_ERROR_CODE = {
    400: ErrorCode.VALIDATION_ERROR,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION_ERROR,
    500: ErrorCode.UNKNOWN,
}


def _generate_error_id() -> str:
    """Short id for matching a response to its log line."""
    return str(uuid.uuid4())[:8]


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_body(
    code: ErrorCode,
    message: str,
    error_id: str,
    details: Optional[Dict[str, Any]] = None,
    recoverable: bool = True,
    recovery_hint: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "error": {
            "code": code.value,
            "message": message,
            "details": details or {},
            "recoverable": recoverable,
            "recovery_hint": recovery_hint,
            "error_id": error_id,
            "timestamp": _timestamp(),
        }
    }


def setup_error_handlers(app: FastAPI, debug: bool = False):
    """
    Register exception handlers on the FastAPI application.

    Call this after creating the app. GameError subclasses keep their own
    status and code; request validation, HTTP errors and anything
    unhandled are mapped onto the same response shape.
    """

    @app.exception_handler(GameError)
    async def game_error_handler(request: Request, exc: GameError):
        """Handle GameError exceptions."""
        error_id = _generate_error_id()

        logger.warning(
            f"[{error_id}] GameError: {exc.code.value} - {exc.message}",
            extra={
                "error_id": error_id,
                "error_code": exc.code.value,
                "path": str(request.url.path),
            }
        )

        response_data = exc.to_dict()
        response_data["error"]["error_id"] = error_id
        response_data["error"]["timestamp"] = _timestamp()

        return JSONResponse(
            status_code=exc.http_status,
            content=response_data
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors from request parsing."""
        errors = []
        for error in exc.errors():
            field = " -> ".join(str(loc) for loc in error.get("loc", []))
            errors.append({
                "field": field,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error")
            })

        return JSONResponse(
            status_code=422,
            content=_error_body(
                ErrorCode.VALIDATION_ERROR,
                "Request validation failed",
                _generate_error_id(),
                details={"errors": errors},
                recovery_hint="Check the request data and correct any invalid fields",
            )
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Handle standard HTTP exceptions."""
        error_code = HTTP_STATUS_TO_ERROR_CODE.get(exc.status_code, ErrorCode.UNKNOWN)

        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(
                error_code,
                str(exc.detail) if exc.detail else "An error occurred",
                _generate_error_id(),
                recoverable=exc.status_code < 500,
            )
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        """Handle all unhandled exceptions."""
        error_id = _generate_error_id()

        logger.error(
            f"[{error_id}] Unhandled exception: {type(exc).__name__}: {exc}",
            extra={
                "error_id": error_id,
                "path": str(request.url.path),
                "method": request.method,
            },
            exc_info=True
        )

        content = _error_body(
            ErrorCode.UNKNOWN,
            "An unexpected error occurred",
            error_id,
            recoverable=False,
            recovery_hint="Restart the mission",
        )

        if debug:
            content["error"]["debug"] = {
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "traceback": traceback.format_exc().split("\n")
            }

        return JSONResponse(
            status_code=500,
            content=content
        )
