"""Correlation ID middleware for request tracing.

Reuses the caller's X-Correlation-ID when it looks like an identifier, or
generates a new one. The id is bound to the request through contextvars so
every log line of a checkout or webhook delivery carries it, and it is
echoed back on the response.
"""

import re

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from checkout_core.utils.logging import clear_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"

# Incoming ids end up in log records and response headers
_VALID_CORRELATION_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")


def accepted_correlation_id(value: str | None) -> str | None:
    """Return the incoming correlation id if usable, else None."""
    if value and _VALID_CORRELATION_ID.match(value):
        return value
    return None


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware that manages correlation IDs for request tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind a correlation id for the request and echo it on the response.

        Args:
            request: Incoming request
            call_next: Next middleware/handler in chain

        Returns:
            Response with the X-Correlation-ID header set
        """
        incoming_id = accepted_correlation_id(request.headers.get(CORRELATION_ID_HEADER))
        correlation_id = set_correlation_id(incoming_id)

        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            clear_correlation_id()
