"""HTTP middleware and the shared error envelope.

Every failure leaving the API uses one JSON shape:
``{"error_code", "message", "details", "request_id"}``. The helpers here
build it so the exception handlers in ``storefront.main`` and the
catch-all middleware agree on the format.
"""

import time
from typing import Any, Callable
from uuid import uuid4

import structlog
from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"

# Query parameters worth carrying in the log context of a request.
_CONTEXT_PARAMS = {"userId": "user_id", "sessionId": "session_id", "q": "search_term"}


# ============================================================================
# Error Envelope
# ============================================================================


def error_response(
    request: Request,
    status_code: int,
    error_code: str,
    message: str,
    details: Any = None,
) -> JSONResponse:
    """Render an error in the storefront envelope.

    Args:
        request: Request being answered; supplies the correlation ID.
        status_code: HTTP status.
        error_code: Machine-readable code, e.g. ``DATA_SOURCE_UNAVAILABLE``.
        message: Human-readable message.
        details: Optional structured details. Defaults to an empty list.

    Returns:
        The JSON response.
    """
    body = {
        "error_code": error_code,
        "message": message,
        "details": [] if details is None else details,
        "request_id": getattr(request.state, "request_id", None),
    }
    return JSONResponse(status_code=status_code, content=body)


def internal_error(request: Request, exc: BaseException) -> JSONResponse:
    """Log an unexpected failure and hide its text from the client."""
    logger.exception(
        "Unhandled exception",
        method=request.method,
        path=request.url.path,
        error_type=type(exc).__name__,
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An internal error occurred",
    )


# ============================================================================
# Middleware
# ============================================================================


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Correlate each request with an ID and a timed access log line.

    The ID comes from ``X-Request-ID`` when the caller sends one and is
    generated otherwise. It is stored on ``request.state``, echoed in the
    response headers and bound into the structlog context together with
    the shopper identifiers found in the query string.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid4())
        request.state.request_id = request_id

        context = {"request_id": request_id}
        for param, key in _CONTEXT_PARAMS.items():
            value = request.query_params.get(param)
            if value:
                context[key] = value
        structlog.contextvars.bind_contextvars(**context)

        started = time.perf_counter()
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info(
                "Request completed",
                method=request.method,
                path=request.url.path,
                status_code=status_code,
                duration_ms=elapsed_ms,
            )
            structlog.contextvars.unbind_contextvars(*context)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[RESPONSE_TIME_HEADER] = str(elapsed_ms)
        return response


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """Turn anything the routers let escape into a 500 envelope."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            return internal_error(request, e)


def setup_middleware(app: FastAPI) -> None:
    """Install the storefront middleware stack.

    Starlette runs the most recently added middleware first, so the
    request context wraps the error handler and failures are still
    logged with their request ID.

    Args:
        app: FastAPI application instance.
    """
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(RequestContextMiddleware)
