"""
app/api/responses.py

Response envelope and exception handlers.

Success: ``{"success": true, "data": ...}``
Failure: ``{"success": false, "error": {"code": ..., "message": ...}}``
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.errors import FlowError, ResourceExhaustedError
from app.logging_utils import log_event

logger = logging.getLogger(__name__)


def success_response(data: Any) -> dict[str, Any]:
    return {"success": True, "data": data}


def error_response(
    *,
    code: str,
    message: str,
    status_code: int,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": {"code": code, "message": message}},
        headers=headers,
    )


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()) if item != "body")
        parts.append(f"{location}: {error.get('msg', 'invalid value')}" if location else error.get("msg", ""))
    return "; ".join(parts) or "Invalid request."


async def flow_error_handler(request: Request, exc: FlowError) -> JSONResponse:
    headers = None
    if isinstance(exc, ResourceExhaustedError):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return error_response(
        code=exc.code,
        message=exc.message,
        status_code=exc.status_code,
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(
        code="invalid-argument",
        message=_format_validation_errors(exc),
        status_code=400,
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log_event(
        logger,
        logging.ERROR,
        "unhandled_error",
        exc_info=True,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return error_response(code="internal", message="Internal server error.", status_code=500)


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(FlowError, flow_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
