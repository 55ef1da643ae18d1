"""Middleware binding a correlation ID to every relay request."""

import time
import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from utils import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)


class CorrelationMiddleware(BaseHTTPMiddleware):
    """Reads or mints `X-Correlation-ID` and echoes it on the response."""

    def __init__(self, app, correlation_header: str = "X-Correlation-ID"):
        super().__init__(app)
        self.correlation_header = correlation_header

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get(self.correlation_header) or str(uuid.uuid4())
        set_correlation_id(correlation_id)
        request.state.correlation_id = correlation_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        finally:
            clear_correlation_id()

        response.headers[self.correlation_header] = correlation_id
        logger.info(
            "Relay request handled",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000.0, 1),
            client_ip=request.client.host if request.client else None,
            correlation_id=correlation_id,
        )
        return response
