"""Webhook dispatcher: the per-delivery state machine.

Each delivery moves through

    RECEIVED -> SIGNATURE_VALIDATED -> PARSED -> DEDUPLICATED | DEFERRED
                                              -> DISPATCHED -> PROCESSED | FAILED

Signature and payload errors are raised to the caller (HTTP 400). Everything
after parsing ends in a DispatchResult.

Deduplication policy is write-after: the event id is claimed before the
notifier runs, but only recorded as processed once the notifier succeeds.
The worker thread that ran the notifier records the outcome: success marks
the claim processed, failure releases it so Stripe's retry re-attempts the
side effects. A delivery that stops waiting on a slow notifier reports
FAILED but leaves the claim with the worker. Redeliveries acknowledge only
a processed record; a live claim is answered DEFERRED so Stripe retries.
"""

import hashlib
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError

from checkout_core.models.events import (
    DeliveryState,
    DispatchResult,
    EventType,
    PaymentResult,
    VerifiedEvent,
)
from checkout_core.models.errors import GatewayError
from checkout_core.services import event_parser, signature
from checkout_core.services.notifier import SideEffectNotifier
from checkout_core.services.processed_event_log import EventLogError, ProcessedEventLog
from checkout_core.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


class WebhookDispatcher:
    """Verifies, parses and dispatches webhook deliveries.

    Safe to share across concurrent requests; the event log provides the
    only cross-request coordination.
    """

    def __init__(
        self,
        webhook_secret: str,
        event_log: ProcessedEventLog,
        notifier: SideEffectNotifier,
        *,
        tolerance: int = signature.DEFAULT_TOLERANCE_SECONDS,
        notifier_timeout: float = 10.0,
        max_workers: int = 4,
    ) -> None:
        self._secret = webhook_secret
        self._event_log = event_log
        self._notifier = notifier
        self._tolerance = tolerance
        self._notifier_timeout = notifier_timeout
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="notifier"
        )

    def close(self, wait: bool = False) -> None:
        self._executor.shutdown(wait=wait)

    def dispatch(self, payload: bytes, signature_header: str | None) -> DispatchResult:
        """Run one webhook delivery through the state machine.

        Args:
            payload: Raw request body
            signature_header: Stripe-Signature header value

        Returns:
            Terminal DispatchResult (PROCESSED, DEDUPLICATED or FAILED)

        Raises:
            SignatureError: If the payload is not authentic
            ParseError: If the payload cannot be decoded
        """
        try:
            signature.verify(
                payload, signature_header, self._secret, tolerance=self._tolerance
            )
        except GatewayError as e:
            logger.warning("Webhook signature verification failed: %s", e.code.value)
            raise

        event = event_parser.parse(payload)
        log_webhook_event(
            logger, event.raw_type, event.event_id, state=DeliveryState.PARSED.value
        )

        if event.event_type == EventType.OTHER:
            log_webhook_event(
                logger,
                event.raw_type,
                event.event_id,
                state=DeliveryState.PROCESSED.value,
                result="skipped",
            )
            return DispatchResult(
                state=DeliveryState.PROCESSED,
                event_id=event.event_id,
                event_type=event.raw_type,
                processing_result="skipped",
                message=f"Event type '{event.raw_type}' not handled",
            )

        payment = event_parser.extract_payment_result(event)
        return self._dispatch_payment(event, payment, hashlib.sha256(payload).hexdigest())

    def _dispatch_payment(
        self,
        event: VerifiedEvent,
        payment: PaymentResult,
        payload_hash: str,
    ) -> DispatchResult:
        try:
            claimed = self._event_log.try_claim(event.event_id, event.raw_type, payload_hash)
            if not claimed:
                return self._unclaimed(event)
        except EventLogError as e:
            return self._failed(event, f"Event log unavailable: {e}")

        log_webhook_event(
            logger,
            event.raw_type,
            event.event_id,
            state=DeliveryState.DISPATCHED.value,
            payment_intent_id=payment.payment_intent_id,
            payment_status=payment.payment_status.value,
        )

        future = self._executor.submit(self._run_side_effects, event.event_id, payment)
        try:
            future.result(timeout=self._notifier_timeout)
        except FutureTimeoutError:
            if future.cancel():
                # Never started, so nothing ran and the claim can go
                self._release(event.event_id)
                return self._failed(
                    event, f"Notifier not started within {self._notifier_timeout}s"
                )
            # Still running; the worker marks or releases the claim when it ends
            return self._failed(
                event, f"Notifier timed out after {self._notifier_timeout}s"
            )
        except EventLogError as e:
            return self._failed(event, f"Failed to record processed event: {e}")
        except Exception as e:
            return self._failed(event, f"Notifier failed: {e}")

        log_webhook_event(
            logger,
            event.raw_type,
            event.event_id,
            state=DeliveryState.PROCESSED.value,
            result="processed",
        )
        return DispatchResult(
            state=DeliveryState.PROCESSED,
            event_id=event.event_id,
            event_type=event.raw_type,
            processing_result="processed",
        )

    def _run_side_effects(self, event_id: str, payment: PaymentResult) -> None:
        """Notify, then record the outcome against the claim.

        Runs on the executor so the outcome is recorded even when the
        waiting delivery has already given up on it.
        """
        try:
            self._notifier.notify(payment)
        except Exception:
            self._release(event_id)
            raise
        try:
            self._event_log.mark_processed(event_id)
        except EventLogError as e:
            logger.error("Failed to mark event %s processed: %s", event_id, e)
            raise

    def _unclaimed(self, event: VerifiedEvent) -> DispatchResult:
        # Only a durable processed record may be acknowledged with a 2xx
        if self._event_log.is_processed(event.event_id):
            log_webhook_event(
                logger,
                event.raw_type,
                event.event_id,
                state=DeliveryState.DEDUPLICATED.value,
                result="duplicate",
            )
            return DispatchResult(
                state=DeliveryState.DEDUPLICATED,
                event_id=event.event_id,
                event_type=event.raw_type,
                processing_result="duplicate",
                message="Event already processed",
            )

        log_webhook_event(
            logger,
            event.raw_type,
            event.event_id,
            state=DeliveryState.DEFERRED.value,
            result="in_progress",
        )
        return DispatchResult(
            state=DeliveryState.DEFERRED,
            event_id=event.event_id,
            event_type=event.raw_type,
            processing_result="in_progress",
            message="Event is being processed by another delivery",
        )

    def _release(self, event_id: str) -> None:
        try:
            self._event_log.release(event_id)
        except EventLogError as e:
            logger.error("Failed to release claim on event %s: %s", event_id, e)

    def _failed(self, event: VerifiedEvent, message: str) -> DispatchResult:
        log_webhook_event(
            logger,
            event.raw_type,
            event.event_id,
            state=DeliveryState.FAILED.value,
            result="error",
            error=message,
        )
        return DispatchResult(
            state=DeliveryState.FAILED,
            event_id=event.event_id,
            event_type=event.raw_type,
            processing_result="failed",
            message=message,
        )
