"""Webhook endpoint for Stripe events.

Handles checkout.session.completed by running payment side effects once per
event id; every other event type is acknowledged and ignored.

This endpoint does NOT require authentication as it receives signed payloads
from Stripe. The body is read raw (capped at MAX_BODY_BYTES) because the
signature covers the exact bytes sent.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool
from starlette.requests import ClientDisconnect
from starlette.status import (
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from checkout_api.dependencies import get_dispatcher
from checkout_api.exceptions import error_response
from checkout_api.models.responses import WebhookResponse
from checkout_core.models.errors import ErrorCode, ErrorResponse, GatewayError
from checkout_core.models.events import DeliveryState
from checkout_core.services.signature import SIGNATURE_HEADER
from checkout_core.services.webhook_dispatcher import WebhookDispatcher
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])

MAX_BODY_BYTES = 65536


class BodyTooLargeError(Exception):
    """Raised when a request body exceeds MAX_BODY_BYTES."""


async def read_limited_body(request: Request, limit: int = MAX_BODY_BYTES) -> bytes:
    """Read the raw request body, refusing anything above `limit` bytes.

    Raises:
        BodyTooLargeError: If the declared or actual size exceeds the limit.
    """
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise BodyTooLargeError(f"Declared body size {declared} exceeds {limit} bytes")

    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            raise BodyTooLargeError(f"Body exceeds {limit} bytes")
    return bytes(body)


@router.post(
    "/webhook",
    summary="Receive Stripe webhook events",
    description="""
Endpoint for Stripe webhook events.

**No authentication required** - the `Stripe-Signature` header is verified
against the webhook signing secret.

**Idempotent**: redeliveries of an already processed event return 200 with
`processingResult: duplicate` and do not repeat side effects.
A delivery that arrives while another one is still running the side effects
for the same event gets 409, so Stripe retries it later.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event processed, deduplicated or ignored"},
        400: {"description": "Invalid signature or payload", "model": ErrorResponse},
        409: {
            "description": "Event is being processed by another delivery",
            "model": ErrorResponse,
        },
        500: {"description": "Side effects failed; Stripe should retry", "model": ErrorResponse},
        503: {"description": "Request body could not be read", "model": ErrorResponse},
    },
)
async def handle_stripe_webhook(
    request: Request,
    dispatcher: WebhookDispatcher = Depends(get_dispatcher),
):
    try:
        payload = await read_limited_body(request)
    except (BodyTooLargeError, ClientDisconnect) as e:
        logger.error("Error reading webhook request body: %s", e)
        raise GatewayError(ErrorCode.BODY_READ_FAILED) from e

    result = await run_in_threadpool(
        dispatcher.dispatch, payload, request.headers.get(SIGNATURE_HEADER)
    )

    if result.state == DeliveryState.DEFERRED:
        return error_response(result.message or "Event is being processed", HTTP_409_CONFLICT)

    if not result.succeeded:
        return error_response(
            result.message or "Webhook processing failed",
            HTTP_500_INTERNAL_SERVER_ERROR,
        )

    return WebhookResponse(
        event_id=result.event_id,
        event_type=result.event_type,
        processing_result=result.processing_result,
        message=result.message,
    )


@router.api_route(
    "/webhook",
    methods=["GET", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def webhook_method_not_allowed() -> None:
    raise HTTPException(status_code=HTTP_405_METHOD_NOT_ALLOWED, headers={"Allow": "POST"})
