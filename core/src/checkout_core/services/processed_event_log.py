"""Processed-event log: at-most-once bookkeeping for webhook side effects.

Stripe delivers webhooks at least once and may deliver the same event to
several instances concurrently. Before side effects run, the dispatcher
claims the event id with an atomic test-and-set. A claim is a lease: it is
released when side effects fail and goes stale after `claim_ttl_seconds`
if the process dies mid-delivery. A claim becomes permanent only through
mark_processed, after side effects have succeeded.

Two backends:
- InMemoryProcessedEventLog: lock-guarded dict, single instance only
- DynamoDBProcessedEventLog: conditional writes, safe across instances
"""

import datetime as dt
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import boto3
from botocore.exceptions import ClientError

from checkout_core.models.processed_event import ClaimStatus, ProcessedEventRecord
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)

Clock = Callable[[], dt.datetime]


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class EventLogError(Exception):
    """Raised when the event log backend cannot be read or written."""


class ProcessedEventLog(ABC):
    """Set of webhook event ids whose side effects have been dispatched."""

    @abstractmethod
    def try_claim(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str | None = None,
    ) -> bool:
        """Atomically claim an event id.

        Returns:
            True if the caller now owns the event, False if it was already
            processed or another delivery holds a live claim.
        """

    @abstractmethod
    def mark_processed(self, event_id: str) -> None:
        """Make a claim permanent once side effects succeeded."""

    @abstractmethod
    def release(self, event_id: str) -> None:
        """Drop an in-progress claim so a redelivery can retry."""

    @abstractmethod
    def is_processed(self, event_id: str) -> bool:
        """Whether side effects for the event id have completed."""


class InMemoryProcessedEventLog(ProcessedEventLog):
    """Lock-guarded in-process event log for single-instance deployments."""

    def __init__(
        self,
        *,
        claim_ttl_seconds: int = 300,
        retention_days: int | None = None,
        clock: Clock = _utcnow,
    ) -> None:
        self._records: dict[str, ProcessedEventRecord] = {}
        self._lock = threading.Lock()
        self._claim_ttl = dt.timedelta(seconds=claim_ttl_seconds)
        self._retention = dt.timedelta(days=retention_days) if retention_days else None
        self._clock = clock

    def try_claim(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str | None = None,
    ) -> bool:
        now = self._clock()
        with self._lock:
            existing = self._records.get(event_id)
            if existing is not None and self._blocks(existing, now):
                return False

            self._records[event_id] = ProcessedEventRecord(
                event_id=event_id,
                event_type=event_type,
                status=ClaimStatus.IN_PROGRESS,
                claimed_at=now,
                payload_hash=payload_hash,
            )
            return True

    def mark_processed(self, event_id: str) -> None:
        now = self._clock()
        with self._lock:
            record = self._records.get(event_id)
            if record is None:
                raise EventLogError(f"No claim held for event {event_id}")
            self._records[event_id] = record.model_copy(
                update={"status": ClaimStatus.PROCESSED, "processed_at": now}
            )

    def release(self, event_id: str) -> None:
        with self._lock:
            record = self._records.get(event_id)
            if record is not None and record.status == ClaimStatus.IN_PROGRESS:
                del self._records[event_id]

    def is_processed(self, event_id: str) -> bool:
        with self._lock:
            record = self._records.get(event_id)
        return record is not None and record.status == ClaimStatus.PROCESSED

    def get(self, event_id: str) -> ProcessedEventRecord | None:
        with self._lock:
            return self._records.get(event_id)

    def _blocks(self, record: ProcessedEventRecord, now: dt.datetime) -> bool:
        if record.status == ClaimStatus.PROCESSED:
            if self._retention is None or record.processed_at is None:
                return True
            return now - record.processed_at < self._retention
        return now - record.claimed_at < self._claim_ttl


class DynamoDBProcessedEventLog(ProcessedEventLog):
    """Event log backed by a DynamoDB table keyed on event_id.

    Claims are conditional puts; processed entries carry an `expires_at`
    epoch attribute for the table's TTL so they drop out after the
    retention window.
    """

    TABLE = "processed-webhook-events"

    def __init__(
        self,
        table_prefix: str,
        *,
        claim_ttl_seconds: int = 300,
        retention_days: int = 30,
        clock: Clock = _utcnow,
        resource: Any = None,
    ) -> None:
        self.table_name = f"{table_prefix}-{self.TABLE}"
        self._dynamodb = resource or boto3.resource("dynamodb")
        self._claim_ttl = dt.timedelta(seconds=claim_ttl_seconds)
        self._retention = dt.timedelta(days=retention_days)
        self._clock = clock

    def _table(self) -> Any:
        return self._dynamodb.Table(self.table_name)

    def try_claim(
        self,
        event_id: str,
        event_type: str,
        payload_hash: str | None = None,
    ) -> bool:
        now = self._clock()
        item: dict[str, Any] = {
            "event_id": event_id,
            "event_type": event_type,
            "status": ClaimStatus.IN_PROGRESS.value,
            "claimed_at": now.isoformat(),
            "claimed_at_epoch": int(now.timestamp()),
        }
        if payload_hash:
            item["payload_hash"] = payload_hash

        try:
            self._table().put_item(
                Item=item,
                ConditionExpression=(
                    "attribute_not_exists(event_id)"
                    " OR (#status = :in_progress AND claimed_at_epoch < :stale)"
                    " OR expires_at < :now"
                ),
                ExpressionAttributeNames={"#status": "status"},  # status is reserved word
                ExpressionAttributeValues={
                    ":in_progress": ClaimStatus.IN_PROGRESS.value,
                    ":stale": int((now - self._claim_ttl).timestamp()),
                    ":now": int(now.timestamp()),
                },
            )
            return True
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return False
            raise EventLogError(f"Failed to claim event {event_id}: {e}") from e

    def mark_processed(self, event_id: str) -> None:
        now = self._clock()
        try:
            self._table().update_item(
                Key={"event_id": event_id},
                UpdateExpression=(
                    "SET #status = :processed, processed_at = :now, expires_at = :expires"
                ),
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={
                    ":processed": ClaimStatus.PROCESSED.value,
                    ":now": now.isoformat(),
                    ":expires": int((now + self._retention).timestamp()),
                },
            )
        except ClientError as e:
            raise EventLogError(f"Failed to mark event {event_id} processed: {e}") from e

    def release(self, event_id: str) -> None:
        try:
            self._table().delete_item(
                Key={"event_id": event_id},
                ConditionExpression="#status = :in_progress",
                ExpressionAttributeNames={"#status": "status"},
                ExpressionAttributeValues={":in_progress": ClaimStatus.IN_PROGRESS.value},
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "ConditionalCheckFailedException":
                return
            raise EventLogError(f"Failed to release event {event_id}: {e}") from e

    def is_processed(self, event_id: str) -> bool:
        try:
            response = self._table().get_item(Key={"event_id": event_id})
        except ClientError as e:
            raise EventLogError(f"Failed to read event {event_id}: {e}") from e
        item = response.get("Item")
        return item is not None and item.get("status") == ClaimStatus.PROCESSED.value
