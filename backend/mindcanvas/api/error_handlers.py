"""Error Handlers - map exceptions raised by routes to JSON error bodies.

Invariants:
    - Every error body has the shape {"error": {code, message, category, severity}}
    - EmptyExportError is answered with 204 and no body
    - Unhandled exceptions answer 500 without internal details
"""

import logging

from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from mindcanvas.core.errors import EmptyExportError, ErrorSeverity, MindCanvasError

logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, category: str, severity: ErrorSeverity, **extra) -> dict:
    return {
        "error": {
            "code": code, "message": message,
            "category": category, "severity": severity.value, **extra,
        },
    }


async def handle_mindcanvas_error(request: Request, exc: MindCanvasError) -> Response:
    if isinstance(exc, EmptyExportError):
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    level = logging.WARNING if exc.http_status < 500 else logging.ERROR
    logger.log(
        level, f"{exc.code} on {request.url.path}: {exc.message}",
        extra={"error_code": exc.code, "path": request.url.path},
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_response())


async def handle_validation_error(request: Request, exc: RequestValidationError) -> Response:
    details = [
        {"field": ".".join(map(str, e["loc"])), "message": e["msg"], "type": e["type"]}
        for e in exc.errors()
    ]
    logger.warning(
        f"Rejected request body on {request.url.path}",
        extra={"error_code": "VALIDATION_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(
            "VALIDATION_ERROR", "Invalid request data", "validation",
            ErrorSeverity.ERROR, details=details,
        ),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> Response:
    logger.exception(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        extra={"error_code": "INTERNAL_ERROR", "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            "INTERNAL_ERROR", "An unexpected error occurred", "internal",
            ErrorSeverity.CRITICAL,
        ),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MindCanvasError, handle_mindcanvas_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
