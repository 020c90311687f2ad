"""Webhook event models.

A VerifiedEvent is the typed view of a webhook body whose signature has
already been checked. Event types the gateway does not act on decode into
EventType.OTHER with the processor's type string kept in raw_type, so new
Stripe event types never break parsing.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """Event types the dispatcher distinguishes."""

    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    OTHER = "other"

    @classmethod
    def from_raw(cls, raw_type: str) -> "EventType":
        if raw_type == cls.CHECKOUT_SESSION_COMPLETED.value:
            return cls.CHECKOUT_SESSION_COMPLETED
        return cls.OTHER


class PaymentStatus(str, Enum):
    """Normalized outcome of a checkout payment."""

    SUCCEEDED = "succeeded"
    PENDING = "pending"
    FAILED = "failed"

    @classmethod
    def from_session_status(cls, payment_status: str | None) -> "PaymentStatus":
        """Map a Checkout Session payment_status onto the normalized enum.

        Args:
            payment_status: Stripe value (paid, unpaid, no_payment_required)

        Returns:
            SUCCEEDED for paid sessions, PENDING for unpaid ones, FAILED otherwise.
        """
        if payment_status in ("paid", "no_payment_required"):
            return cls.SUCCEEDED
        if payment_status == "unpaid":
            return cls.PENDING
        return cls.FAILED


class VerifiedEvent(BaseModel):
    """A webhook event decoded from a payload whose signature was verified."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx); redeliveries reuse it",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: EventType
    raw_type: str = Field(
        ...,
        description="Event type string as sent by Stripe",
        examples=["checkout.session.completed", "payment_intent.created"],
    )
    data: dict[str, Any] = Field(default_factory=dict)


class PaymentResult(BaseModel):
    """Flattened payment outcome handed to the side-effect notifier."""

    model_config = ConfigDict(frozen=True)

    payment_intent_id: str = Field(..., examples=["pi_3ABC123DEF456"])
    payment_status: PaymentStatus
    amount_total: int = Field(..., description="Amount in minor currency units")
    currency: str = Field(..., description="ISO currency code", examples=["eur"])

    def to_notification(self) -> dict[str, Any]:
        """Record shape consumed by the email and ledger collaborators."""
        return {
            "paymentIntentID": self.payment_intent_id,
            "paymentStatus": self.payment_status.value,
            "paymentAmount": self.amount_total,
            "currency": self.currency,
        }


class DeliveryState(str, Enum):
    """States a single webhook delivery moves through."""

    RECEIVED = "received"
    SIGNATURE_VALIDATED = "signature_validated"
    PARSED = "parsed"
    DEDUPLICATED = "deduplicated"
    DEFERRED = "deferred"  # another delivery holds a live claim
    DISPATCHED = "dispatched"
    PROCESSED = "processed"
    FAILED = "failed"


class DispatchResult(BaseModel):
    """Terminal outcome of dispatching one webhook delivery."""

    model_config = ConfigDict(frozen=True)

    state: DeliveryState
    event_id: str
    event_type: str
    processing_result: str  # "processed", "duplicate", "skipped", "in_progress", "failed"
    message: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.state not in (DeliveryState.DEFERRED, DeliveryState.FAILED)
