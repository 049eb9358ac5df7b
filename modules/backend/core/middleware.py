"""
Request Context Middleware.

Request tracking, timing, frontend identification and structlog context for
every board request.
"""

import uuid
from datetime import datetime

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from modules.backend.core.logging import VALID_SOURCES, get_logger
from modules.backend.core.utils import utc_now

logger = get_logger(__name__)


def _elapsed_ms(start_time: datetime) -> int:
    return int((utc_now() - start_time).total_seconds() * 1000)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds request context to every request.

    Headers:
    - X-Request-ID: Unique request identifier (generated if not provided)
    - X-Frontend-ID: Caller identifier (web, cli, api, internal)
    - X-Response-Time: Response duration in milliseconds

    All logs within a request include request_id, frontend, method and path.
    Handlers can read request.state.request_id and request.state.frontend.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Process request with context tracking."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        frontend = request.headers.get("X-Frontend-ID", "unknown").lower()
        if frontend not in VALID_SOURCES:
            frontend = "unknown"

        start_time = utc_now()

        request.state.request_id = request_id
        request.state.frontend = frontend
        request.state.start_time = start_time

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            frontend=frontend,
            method=request.method,
            path=request.url.path,
        )

        logger.debug(
            "Request started",
            extra={"client_host": request.client.host if request.client else None},
        )

        try:
            response = await call_next(request)

            duration_ms = _elapsed_ms(start_time)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms}ms"

            logger.debug(
                "Request completed",
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            return response

        except Exception as exc:
            logger.error(
                "Request failed with exception",
                extra={"duration_ms": _elapsed_ms(start_time), "error_type": type(exc).__name__},
            )
            raise

        finally:
            structlog.contextvars.clear_contextvars()
