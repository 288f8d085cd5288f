"""API middleware: error handling, CORS and request timing.

Every failure is converted to an HTTP response at the request boundary;
no exception escapes to terminate the server.
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import structlog
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware

from retail_graph.domain.errors import ClientInputError, StoreError

if TYPE_CHECKING:
    from fastapi import FastAPI, Request, Response

logger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------


async def _client_input_error_handler(
    _request: Request,
    exc: ClientInputError,
) -> ORJSONResponse:
    """Convert ClientInputError to a 422 response."""
    return ORJSONResponse(
        status_code=422,
        content={
            "detail": [
                {
                    "field": exc.field,
                    "message": exc.message,
                }
            ]
        },
    )


async def _request_validation_error_handler(
    _request: Request,
    exc: RequestValidationError,
) -> ORJSONResponse:
    """Convert FastAPI parameter validation errors to the ClientInputError shape."""
    detail = []
    for error in exc.errors():
        # loc starts with the parameter source: query, path, header or body
        parts = [str(part) for part in error["loc"]]
        detail.append({"field": ".".join(parts[1:]) or ".".join(parts), "message": error["msg"]})
    return ORJSONResponse(status_code=422, content={"detail": detail})


async def _store_error_handler(
    request: Request,
    exc: StoreError,
) -> ORJSONResponse:
    """Convert store failures to a 500 response scoped to this request."""
    logger.error(
        "store_error",
        path=request.url.path,
        type=type(exc).__name__,
        error=str(exc),
    )
    return ORJSONResponse(
        status_code=500,
        content={
            "detail": exc.detail,
            "type": type(exc).__name__,
        },
    )


async def _generic_error_handler(
    _request: Request,
    exc: Exception,
) -> ORJSONResponse:
    """Convert unhandled exceptions to a structured 500 response."""
    logger.error("unhandled_exception", exc_info=exc)
    return ORJSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "type": type(exc).__name__,
        },
    )


# ---------------------------------------------------------------------------
# Request timing middleware
# ---------------------------------------------------------------------------


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Adds an X-Request-Time-Ms header to every response."""

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        start_time = time.monotonic()
        response: Response = await call_next(request)
        elapsed_ms = (time.monotonic() - start_time) * 1000
        response.headers["X-Request-Time-Ms"] = f"{elapsed_ms:.1f}"
        logger.debug(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            elapsed_ms=round(elapsed_ms, 1),
        )
        return response


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


def register_middleware(app: FastAPI, cors_origins: list[str] | None = None) -> None:
    """Attach all middleware and exception handlers to the app."""
    app.add_exception_handler(ClientInputError, _client_input_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        RequestValidationError,
        _request_validation_error_handler,  # type: ignore[arg-type]
    )
    app.add_exception_handler(StoreError, _store_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_error_handler)
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
