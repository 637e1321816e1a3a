"""Request logging and error handling for the gateway API.

Every request gets a short request id, echoed back in ``X-Request-ID`` and
included in error envelopes. Gateway errors become JSON envelopes with the
status their exception class maps to.
"""

import logging
import os
import time
import uuid
from typing import Callable

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from src.constants import DEFAULT_IDENTITY_HEADER
from src.core.usage.exceptions import DownstreamError, GatewayError
from src.utils.timer_utils import elapsed_ms

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-MS"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with its caller, status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        caller = request.headers.get(os.getenv("IDENTITY_HEADER", DEFAULT_IDENTITY_HEADER)) or "anonymous"

        start_time = time.monotonic()
        response = await call_next(request)
        duration_ms = elapsed_ms(start_time)

        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"[{request_id}] {request.method} {request.url.path} user={caller} "
            f"status={response.status_code} duration={duration_ms:.1f}ms"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = f"{duration_ms:.1f}"
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turn anything no exception handler caught into a 500 envelope."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.exception(f"[{request_id}] Unhandled {type(e).__name__} on {request.url.path}")
            return JSONResponse(
                status_code=500,
                content={
                    "success": False,
                    "error": "internal_error",
                    "message": "An unexpected error occurred",
                    "request_id": request_id,
                },
            )


def add_middleware(app: FastAPI) -> None:
    """Add all custom middleware to the application."""
    # Added last runs first: request logging wraps error handling
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestLoggingMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


async def gateway_exception_handler(request: Request, exc: GatewayError):
    """Handle gate, forwarding and billing errors with their mapped status."""
    request_id = getattr(request.state, "request_id", "unknown")

    if exc.status_code >= 500 and not isinstance(exc, DownstreamError):
        logger.error(f"[{request_id}] {exc.kind}: {exc.message} - Path: {request.url.path}")
    else:
        logger.warning(
            f"[{request_id}] HTTP {exc.status_code} {exc.kind}: {exc.message} - Path: {request.url.path}"
        )

    content = exc.to_response_dict()
    content["request_id"] = request_id
    return JSONResponse(status_code=exc.status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    request_id = getattr(request.state, "request_id", "unknown")

    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"[{request_id}] HTTP {exc.status_code} - {exc.detail} - Path: {request.url.path}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "status_code": exc.status_code,
            "request_id": request_id,
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed messages (HTTP 400)."""
    request_id = getattr(request.state, "request_id", "unknown")

    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })
        logger.warning(f"[{request_id}] Validation error - Field: {field}, Message: {error['msg']}")

    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid request data",
            "details": errors,
            "request_id": request_id,
        }
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""
    app.add_exception_handler(GatewayError, gateway_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
