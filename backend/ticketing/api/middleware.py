"""
Request logging and domain error translation for the host process.
"""

import time
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ticketing.core.errors import DomainError, ErrorCode
from ticketing.core.logging import get_logger

logger = get_logger(__name__)

_STATUS_BY_CODE = {
    ErrorCode.INVALID_INPUT: 422,
    ErrorCode.TICKET_NOT_FOUND: 404,
    ErrorCode.STORE_UNAVAILABLE: 503,
}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds a short request id to the log context and logs each request once."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = uuid.uuid4().hex[:8]
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers["X-Request-ID"] = request_id
        return response


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = _STATUS_BY_CODE.get(exc.code, 400)
    if status_code >= 500:
        logger.error("request_failed", code=exc.code.value, detail=exc.message)
    return JSONResponse(
        status_code=status_code,
        content={"code": exc.code.value, "detail": exc.message},
    )


def install(app: FastAPI) -> None:
    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(DomainError, domain_error_handler)
