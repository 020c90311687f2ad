"""Checkout models: purchase request, hosted session and price details."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

# Stripe substitutes the real session id for this token in the success URL
CHECKOUT_SESSION_ID_PLACEHOLDER = "{CHECKOUT_SESSION_ID}"


class PurchaseRequest(BaseModel):
    """A buyer's request to pay for the configured price.

    Quantity bounds are checked by the orchestrator so that an invalid
    request surfaces as INVALID_QUANTITY rather than a model error.
    """

    model_config = ConfigDict(frozen=True)

    quantity: int = Field(..., description="Number of units to buy")
    price_id: str = Field(
        ...,
        description="Stripe Price ID configured for the product",
        examples=["price_1ABC123DEF456"],
    )


class LineItem(BaseModel):
    """Single line item of a checkout session."""

    model_config = ConfigDict(frozen=True)

    price_id: str
    quantity: int = Field(..., ge=1)


class CheckoutSession(BaseModel):
    """Transient reference to a Stripe-hosted checkout session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        ...,
        description="Stripe Checkout Session ID (cs_xxx)",
        examples=["cs_test_abc123def456"],
    )
    redirect_url: str = Field(
        ...,
        description="Stripe Checkout URL for payment redirect",
        examples=["https://checkout.stripe.com/c/pay/cs_test_abc123"],
    )
    mode: Literal["payment"] = "payment"
    line_items: tuple[LineItem] = Field(
        ...,
        description="Exactly one line item referencing the configured price",
    )


class PriceDetails(BaseModel):
    """Amount and currency of the configured price."""

    model_config = ConfigDict(frozen=True)

    price_id: str
    unit_amount: int = Field(..., ge=0, description="Unit amount in minor currency units")
    currency: str = Field(..., description="ISO currency code", examples=["eur"])
