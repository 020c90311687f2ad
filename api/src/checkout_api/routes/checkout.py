"""Checkout endpoints.

Provides endpoints for:
- GET /config: publishable key and price for the checkout page
- GET /checkout-session: session details shown on the success page
- POST /create-checkout-session: redirect the buyer to Stripe Checkout
"""

from typing import Any

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from checkout_api.dependencies import get_config, get_orchestrator
from checkout_api.models.responses import ConfigResponse
from checkout_core.config import GatewayConfig
from checkout_core.services.checkout_orchestrator import CheckoutOrchestrator

router = APIRouter(tags=["checkout"])


@router.get(
    "/config",
    summary="Checkout page configuration",
    response_model=ConfigResponse,
    responses={
        405: {"description": "Method not allowed"},
        500: {"description": "Stripe price lookup failed"},
    },
)
def get_checkout_config(
    config: GatewayConfig = Depends(get_config),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> ConfigResponse:
    """Return the publishable key with the configured price's amount and currency."""
    price = orchestrator.get_price_details()
    return ConfigResponse(
        public_key=config.stripe_publishable_key,
        unit_amount=price.unit_amount,
        currency=price.currency,
    )


@router.get(
    "/checkout-session",
    summary="Retrieve a checkout session",
    description="Returns the Stripe Checkout Session object as sent by Stripe.",
    responses={
        400: {"description": "Missing sessionId"},
        405: {"description": "Method not allowed"},
        500: {"description": "Stripe session lookup failed"},
    },
)
def get_checkout_session(
    session_id: str | None = Query(default=None, alias="sessionId"),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    return orchestrator.get_session(session_id)


@router.post(
    "/create-checkout-session",
    summary="Create a checkout session",
    description="""
Create a Stripe Checkout session for the configured price and redirect the
buyer to it.

**Form fields:** `quantity` (positive integer).
""",
    status_code=HTTP_303_SEE_OTHER,
    response_class=RedirectResponse,
    responses={
        303: {"description": "Redirect to the Stripe-hosted checkout page"},
        400: {"description": "Invalid quantity"},
        500: {"description": "Stripe session creation failed"},
    },
)
def create_checkout_session(
    quantity: str | None = Form(default=None),
    orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
) -> RedirectResponse:
    session = orchestrator.create_session_from_form(quantity)
    return RedirectResponse(session.redirect_url, status_code=HTTP_303_SEE_OTHER)
