"""FastAPI exception handlers for converting GatewayError to HTTP responses.

Every error leaves the API as `{"error": {"message": "<text>"}}`. The
ErrorCode-to-HTTP status mapping:
- 400 Bad Request: invalid client input, webhook signature or payload errors
- 500 Internal Server Error: Stripe failures, notifier failures, bad config
- 503 Service Unavailable: webhook body could not be read

Usage:
    from checkout_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from checkout_core.models.errors import ErrorCode, ErrorResponse, GatewayError

logger = logging.getLogger(__name__)

# Map ErrorCode to HTTP status codes
ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    # Client input -> 400 Bad Request
    ErrorCode.INVALID_QUANTITY: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_SESSION_ID: HTTP_400_BAD_REQUEST,
    # Webhook authenticity and payload -> 400 Bad Request
    ErrorCode.SIGNATURE_MALFORMED: HTTP_400_BAD_REQUEST,
    ErrorCode.SIGNATURE_EXPIRED: HTTP_400_BAD_REQUEST,
    ErrorCode.SIGNATURE_MISMATCH: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_JSON: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_TYPE: HTTP_400_BAD_REQUEST,
    ErrorCode.MISSING_EVENT_ID: HTTP_400_BAD_REQUEST,
    ErrorCode.INVALID_SESSION_OBJECT: HTTP_400_BAD_REQUEST,
    # Server side -> 500
    ErrorCode.UPSTREAM_FAILURE: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.NOTIFIER_FAILED: HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorCode.CONFIGURATION_ERROR: HTTP_500_INTERNAL_SERVER_ERROR,
    # Body read -> 503
    ErrorCode.BODY_READ_FAILED: HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


def error_response(message: str, status_code: int) -> JSONResponse:
    """Build a JSON error response in the gateway's error shape."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse.from_message(message).model_dump(mode="json"),
    )


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Handle GatewayError exceptions and convert to JSON response.

    Args:
        request: The incoming request
        exc: The GatewayError exception

    Returns:
        JSONResponse with the error body and mapped status code.
    """
    status_code = get_http_status_for_error(exc.code)
    if status_code >= HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)

    return JSONResponse(
        status_code=status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Render framework HTTP errors (404, 405, ...) in the gateway's error shape."""
    response = error_response(str(exc.detail), exc.status_code)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
    """
    app.add_exception_handler(GatewayError, gateway_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)  # type: ignore[arg-type]
