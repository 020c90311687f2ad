"""Processed webhook event record for idempotency and auditing."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ClaimStatus(str, Enum):
    """Lifecycle of an entry in the processed-event log."""

    IN_PROGRESS = "in_progress"
    PROCESSED = "processed"


class ProcessedEventRecord(BaseModel):
    """Entry of the processed-event log.

    Used for:
    - Idempotency: side effects run at most once per event_id
    - Concurrency: an in_progress claim keeps parallel redeliveries out
    - Auditing: track when each event was handled
    """

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["checkout.session.completed"],
    )
    status: ClaimStatus = Field(
        default=ClaimStatus.IN_PROGRESS,
        description="in_progress while the notifier runs, processed afterwards",
    )
    claimed_at: datetime = Field(..., description="When the claim was taken")
    processed_at: datetime | None = Field(
        default=None,
        description="When side effects completed",
    )
    payload_hash: str | None = Field(
        default=None,
        description="SHA-256 hash of the raw payload",
        examples=["a1b2c3d4e5f6..."],
    )
