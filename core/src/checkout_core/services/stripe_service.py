"""Stripe service for checkout sessions and prices.

Provides integration with Stripe using the v8+ StripeClient pattern. The
client is built lazily from the configured secret key with a bounded request
timeout and network retries disabled: a checkout session must never be
created twice behind the caller's back.
"""

import logging
from typing import Any

import stripe
from stripe import StripeClient

from checkout_core.models.checkout import CheckoutSession, LineItem, PriceDetails

logger = logging.getLogger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Narrow interface to the Stripe objects the gateway uses.

    Handles:
    - Checkout session creation
    - Checkout session retrieval
    - Price retrieval

    Usage:
        stripe_svc = StripeService(secret_key, timeout=10)
        session = stripe_svc.create_checkout_session(
            price_id="price_1ABC",
            quantity=2,
            success_url="https://example.com/html/success.html?session_id={CHECKOUT_SESSION_ID}",
            cancel_url="https://example.com/canceled.html",
        )
    """

    def __init__(self, secret_key: str, *, timeout: float = 10.0) -> None:
        """Initialize Stripe service.

        Args:
            secret_key: Stripe secret API key.
            timeout: Per-request timeout in seconds.
        """
        self._secret_key = secret_key
        self._timeout = timeout
        self._client: StripeClient | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization)."""
        if self._client is None:
            self._client = StripeClient(
                self._secret_key,
                http_client=stripe.RequestsClient(timeout=self._timeout),
                max_network_retries=0,
            )
            logger.info("Stripe client initialized (timeout %.1fs)", self._timeout)
        return self._client

    def create_checkout_session(
        self,
        *,
        price_id: str,
        quantity: int,
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        """Create a Stripe Checkout session for a single line item.

        Args:
            price_id: Stripe Price ID of the line item.
            quantity: Line item quantity.
            success_url: URL to redirect on success (supports {CHECKOUT_SESSION_ID}).
            cancel_url: URL to redirect on cancel.

        Returns:
            CheckoutSession with the hosted checkout URL.

        Raises:
            StripeServiceError: If session creation fails.
        """
        client = self._get_client()

        try:
            logger.info(
                "Creating Stripe checkout session for price %s, quantity %d",
                price_id,
                quantity,
            )

            session = client.checkout.sessions.create(
                params={
                    "mode": "payment",
                    "line_items": [
                        {
                            "price": price_id,
                            "quantity": quantity,
                        }
                    ],
                    "success_url": success_url,
                    "cancel_url": cancel_url,
                },
            )
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe checkout session creation failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to create checkout session: {e}",
                stripe_error_code=error_code,
            ) from e

        if not session.url:
            raise StripeServiceError(
                f"Checkout session {session.id} has no redirect URL"
            )

        logger.info("Checkout session created: %s", session.id)

        return CheckoutSession(
            id=session.id,
            redirect_url=session.url,
            line_items=(LineItem(price_id=price_id, quantity=quantity),),
        )

    def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        """Fetch a checkout session as a plain dict.

        Args:
            session_id: Stripe Checkout Session ID (cs_xxx).

        Raises:
            StripeServiceError: If retrieval fails.
        """
        client = self._get_client()

        try:
            session = client.checkout.sessions.retrieve(session_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe checkout session retrieval failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to retrieve checkout session: {e}",
                stripe_error_code=error_code,
            ) from e

        return session.to_dict()

    def retrieve_price(self, price_id: str) -> PriceDetails:
        """Fetch the amount and currency of a price.

        Args:
            price_id: Stripe Price ID.

        Raises:
            StripeServiceError: If retrieval fails or the price has no unit amount.
        """
        client = self._get_client()

        try:
            price = client.prices.retrieve(price_id)
        except stripe.StripeError as e:
            error_code = getattr(e, "code", None)
            logger.error(
                "Stripe price retrieval failed: %s (code: %s)",
                str(e),
                error_code,
            )
            raise StripeServiceError(
                f"Failed to retrieve price: {e}",
                stripe_error_code=error_code,
            ) from e

        if price.unit_amount is None:
            raise StripeServiceError(f"Price {price_id} has no unit amount")

        return PriceDetails(
            price_id=price.id,
            unit_amount=price.unit_amount,
            currency=price.currency,
        )
