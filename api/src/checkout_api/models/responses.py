"""API response models.

Field names are camelCase on the wire to match the browser client.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ConfigResponse(CamelModel):
    """Publishable key and price shown on the checkout page."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"publicKey": "pk_test_abc123", "unitAmount": 1999, "currency": "eur"}
            ]
        },
    )

    public_key: str = Field(..., description="Stripe publishable key")
    unit_amount: int = Field(..., description="Unit price in minor currency units")
    currency: str = Field(..., description="ISO currency code")


class WebhookResponse(CamelModel):
    """Acknowledgement returned to Stripe for a handled delivery."""

    received: bool = True
    event_id: str
    event_type: str
    processing_result: str  # "processed", "duplicate", "skipped"
    message: str | None = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    service: str
