"""Side-effect notifier for completed payments.

The dispatcher hands every newly completed payment to a SideEffectNotifier.
PaymentNotifier is the default implementation: it sends the buyer a
confirmation email and updates the payment ledger. Both collaborators are
stubs that log the record they receive; deployments swap in real ones.
"""

from collections.abc import Callable
from typing import Any, Protocol

from checkout_core.models.errors import NotifierError
from checkout_core.models.events import PaymentResult
from checkout_core.utils.logging import get_logger

logger = get_logger(__name__)


class SideEffectNotifier(Protocol):
    """Receives one PaymentResult per processed payment event."""

    def notify(self, result: PaymentResult) -> None: ...


def send_confirmation_email(record: dict[str, Any]) -> None:
    logger.info(
        "Sending confirmation email for payment %s (%s %s)",
        record["paymentIntentID"],
        record["paymentAmount"],
        record["currency"],
    )


def update_payment_status(record: dict[str, Any]) -> None:
    logger.info(
        "Updating payment status for %s to %s",
        record["paymentIntentID"],
        record["paymentStatus"],
    )


class PaymentNotifier:
    """Runs the email and ledger side effects for a payment result.

    Any exception from a collaborator is re-raised as NotifierError so the
    dispatcher can fail the delivery and release its claim.
    """

    def __init__(
        self,
        email_sender: Callable[[dict[str, Any]], None] = send_confirmation_email,
        ledger_updater: Callable[[dict[str, Any]], None] = update_payment_status,
    ) -> None:
        self._send_email = email_sender
        self._update_ledger = ledger_updater

    def notify(self, result: PaymentResult) -> None:
        record = result.to_notification()
        try:
            self._send_email(record)
            self._update_ledger(record)
        except NotifierError:
            raise
        except Exception as e:
            logger.error(
                "Side effects failed for payment %s: %s",
                result.payment_intent_id,
                e,
            )
            raise NotifierError(f"Failed to complete payment side effects: {e}") from e
