"""Request correlation and access logging middleware."""

import time
import uuid
from collections.abc import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging import get_logger, request_id_ctx

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time-Ms"


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag every request with a correlation ID and write one access log line.

    The ID is taken from ``X-Request-ID`` when the client sends one and
    generated otherwise; it is echoed on the response and attached to every
    log event emitted while the request is in flight. Access lines are
    logged at ``error`` for 5xx, ``warning`` for 4xx and ``info`` otherwise,
    so slow or failing sales queries stand out.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request with correlation ID and timing.

        Args:
            request: Incoming HTTP request.
            call_next: Next middleware/handler in chain.

        Returns:
            Response with X-Request-ID and X-Response-Time-Ms headers.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_ctx.set(request_id)
        started = time.perf_counter()
        fields = {
            "method": request.method,
            "path": request.url.path,
            "query": request.url.query or None,
        }

        try:
            try:
                response = await call_next(request)
            except Exception:
                logger.error("http.request_failed", duration_ms=_elapsed_ms(started), **fields)
                raise

            duration_ms = _elapsed_ms(started)
            if response.status_code >= 500:
                log = logger.error
            elif response.status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "http.request_completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
                **fields,
            )

            response.headers[REQUEST_ID_HEADER] = request_id
            response.headers[RESPONSE_TIME_HEADER] = str(duration_ms)
            return response
        finally:
            request_id_ctx.reset(token)
