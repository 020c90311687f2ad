"""Decode verified webhook payloads into typed events."""

import json
from typing import Any

from checkout_core.models.errors import ErrorCode, ParseError
from checkout_core.models.events import (
    EventType,
    PaymentResult,
    PaymentStatus,
    VerifiedEvent,
)


def parse(payload: bytes) -> VerifiedEvent:
    """Decode a webhook body into a VerifiedEvent.

    Callers must have verified the payload signature first.

    Args:
        payload: Raw webhook body

    Returns:
        VerifiedEvent; unknown event types map to EventType.OTHER

    Raises:
        ParseError: INVALID_JSON, MISSING_TYPE or MISSING_EVENT_ID
    """
    try:
        body = json.loads(payload)
    except (UnicodeDecodeError, ValueError) as e:
        raise ParseError(ErrorCode.INVALID_JSON) from e

    if not isinstance(body, dict):
        raise ParseError(ErrorCode.INVALID_JSON)

    raw_type = body.get("type")
    if not isinstance(raw_type, str) or not raw_type:
        raise ParseError(ErrorCode.MISSING_TYPE)

    event_id = body.get("id")
    if not isinstance(event_id, str) or not event_id:
        raise ParseError(ErrorCode.MISSING_EVENT_ID)

    data = body.get("data")
    if data is None:
        data = {}
    elif not isinstance(data, dict):
        raise ParseError(ErrorCode.INVALID_JSON)

    return VerifiedEvent(
        event_id=event_id,
        event_type=EventType.from_raw(raw_type),
        raw_type=raw_type,
        data=data,
    )


def extract_payment_result(event: VerifiedEvent) -> PaymentResult:
    """Pull the payment outcome out of a checkout.session.completed event.

    Args:
        event: Event whose data.object is a Checkout Session

    Returns:
        PaymentResult for the side-effect notifier

    Raises:
        ParseError: INVALID_SESSION_OBJECT if the session cannot be read
    """
    session = event.data.get("object")
    if not isinstance(session, dict):
        raise ParseError(
            ErrorCode.INVALID_SESSION_OBJECT,
            details={"event_id": event.event_id},
        )

    payment_intent_id = _payment_intent_id(session.get("payment_intent"))
    amount_total = session.get("amount_total")
    currency = session.get("currency")

    if (
        payment_intent_id is None
        or not isinstance(amount_total, int)
        or isinstance(amount_total, bool)
        or not isinstance(currency, str)
    ):
        raise ParseError(
            ErrorCode.INVALID_SESSION_OBJECT,
            details={"event_id": event.event_id},
        )

    return PaymentResult(
        payment_intent_id=payment_intent_id,
        payment_status=PaymentStatus.from_session_status(session.get("payment_status")),
        amount_total=amount_total,
        currency=currency,
    )


def _payment_intent_id(value: Any) -> str | None:
    # payment_intent is an id, or an object when expanded
    if isinstance(value, str) and value:
        return value
    if isinstance(value, dict) and isinstance(value.get("id"), str):
        return value["id"]
    return None
