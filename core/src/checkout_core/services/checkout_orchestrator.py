"""Checkout orchestration: validate a purchase and create the hosted session."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from checkout_core.models.checkout import (
    CHECKOUT_SESSION_ID_PLACEHOLDER,
    CheckoutSession,
    PriceDetails,
    PurchaseRequest,
)
from checkout_core.models.errors import ErrorCode, OrchestratorError
from checkout_core.services.stripe_service import StripeService, StripeServiceError
from checkout_core.utils.logging import get_logger, log_checkout_operation

if TYPE_CHECKING:
    from checkout_core.config import GatewayConfig

logger = get_logger(__name__)

SUCCESS_PATH = "/html/success.html"
CANCEL_PATH = "/canceled.html"


class CheckoutOrchestrator:
    """Turns a buyer's purchase request into a Stripe Checkout redirect.

    Holds no state between requests. Stripe failures are reported as
    UPSTREAM_FAILURE and never retried.
    """

    def __init__(self, config: GatewayConfig, stripe_service: StripeService) -> None:
        self._price_id = config.price_id
        self._domain = config.base_domain
        self._stripe = stripe_service

    @property
    def success_url(self) -> str:
        return f"{self._domain}{SUCCESS_PATH}?session_id={CHECKOUT_SESSION_ID_PLACEHOLDER}"

    @property
    def cancel_url(self) -> str:
        return f"{self._domain}{CANCEL_PATH}"

    def build_request(self, raw_quantity: str | None) -> PurchaseRequest:
        """Parse a form quantity into a PurchaseRequest.

        Args:
            raw_quantity: Form value as submitted, possibly missing

        Returns:
            PurchaseRequest for the configured price

        Raises:
            OrchestratorError: INVALID_QUANTITY unless a positive integer
        """
        text = (raw_quantity or "").strip()
        if not text.isascii() or not text.isdigit():
            logger.warning("Rejected checkout quantity %r", raw_quantity)
            raise OrchestratorError(ErrorCode.INVALID_QUANTITY)

        request = PurchaseRequest(quantity=int(text), price_id=self._price_id)
        self._check_quantity(request)
        return request

    def create_session(self, request: PurchaseRequest) -> CheckoutSession:
        """Create a Checkout session for a validated request.

        Args:
            request: Purchase request

        Returns:
            CheckoutSession whose redirect_url the buyer is sent to

        Raises:
            OrchestratorError: INVALID_QUANTITY or UPSTREAM_FAILURE
        """
        self._check_quantity(request)

        try:
            session = self._stripe.create_checkout_session(
                price_id=request.price_id,
                quantity=request.quantity,
                success_url=self.success_url,
                cancel_url=self.cancel_url,
            )
        except StripeServiceError as e:
            log_checkout_operation(
                logger,
                "create_checkout_session",
                price_id=request.price_id,
                quantity=request.quantity,
                error=str(e),
            )
            raise OrchestratorError(
                ErrorCode.UPSTREAM_FAILURE,
                f"error while creating session: {e}",
            ) from e

        log_checkout_operation(
            logger,
            "create_checkout_session",
            session_id=session.id,
            price_id=request.price_id,
            quantity=request.quantity,
        )
        return session

    def create_session_from_form(self, raw_quantity: str | None) -> CheckoutSession:
        """Validate a raw form quantity and create the session."""
        return self.create_session(self.build_request(raw_quantity))

    def get_price_details(self) -> PriceDetails:
        """Fetch the configured price's amount and currency.

        Raises:
            OrchestratorError: UPSTREAM_FAILURE if Stripe cannot be reached
        """
        try:
            return self._stripe.retrieve_price(self._price_id)
        except StripeServiceError as e:
            log_checkout_operation(
                logger, "retrieve_price", price_id=self._price_id, error=str(e)
            )
            raise OrchestratorError(
                ErrorCode.UPSTREAM_FAILURE,
                f"error while retrieving price: {e}",
            ) from e

    def get_session(self, session_id: str | None) -> dict[str, Any]:
        """Fetch a checkout session by id.

        Raises:
            OrchestratorError: MISSING_SESSION_ID or UPSTREAM_FAILURE
        """
        if not session_id or not session_id.strip():
            raise OrchestratorError(ErrorCode.MISSING_SESSION_ID)

        try:
            return self._stripe.retrieve_checkout_session(session_id.strip())
        except StripeServiceError as e:
            log_checkout_operation(
                logger, "retrieve_checkout_session", session_id=session_id, error=str(e)
            )
            raise OrchestratorError(
                ErrorCode.UPSTREAM_FAILURE,
                f"error while retrieving session: {e}",
            ) from e

    @staticmethod
    def _check_quantity(request: PurchaseRequest) -> None:
        if request.quantity < 1:
            logger.warning("Rejected checkout quantity %r", request.quantity)
            raise OrchestratorError(ErrorCode.INVALID_QUANTITY)
