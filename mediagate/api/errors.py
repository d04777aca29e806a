"""Exception handlers rendering every failure as the JSON error envelope.

    {"success": false, "error": "<message>", "code": "<ErrorCode>"}
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mediagate.errors import ErrorCode, MediaGatewayError

logger = logging.getLogger(__name__)


def error_envelope(message: str, code: Optional[ErrorCode] = None, **extra: Any) -> dict:
    body: dict[str, Any] = {"success": False, "error": message}
    if code is not None:
        body["code"] = code.value
    body.update(extra)
    return body


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        loc = [str(p) for p in error.get("loc", ()) if p != "body"]
        prefix = ".".join(loc)
        parts.append(f"{prefix}: {error.get('msg')}" if prefix else str(error.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def gateway_error_handler(request: Request, exc: MediaGatewayError) -> JSONResponse:
    level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(level, f"{request.method} {request.url.path} → {exc.status_code} [{exc.code.value}] {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(exc.message, exc.code),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _format_validation_errors(exc)
    logger.warning(f"{request.method} {request.url.path} → 400 validation: {message}")
    return JSONResponse(
        status_code=400,
        content=error_envelope(message, ErrorCode.INVALID_REQUEST),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content=error_envelope(
                "Route not found",
                ErrorCode.NOT_FOUND,
                path=request.url.path,
                method=request.method,
            ),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_envelope(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_envelope("Internal server error", ErrorCode.INTERNAL_ERROR),
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(MediaGatewayError, gateway_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
