"""
Correlation ID Middleware

Tags every HTTP request with a correlation ID and logs its outcome.
"""
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from ...utils.logger import set_correlation_id, get_logger
from ...utils.idgen import generate_correlation_id

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Correlation-Id"


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds correlation ID to all requests.

    - Reuses an incoming X-Correlation-Id header or generates a new ID
    - Exposes it to log records through the logging context
    - Echoes it on the response
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or generate_correlation_id()
        set_correlation_id(correlation_id)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers[CORRELATION_HEADER] = correlation_id
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)",
            extra={"status": response.status_code}
        )
        return response
