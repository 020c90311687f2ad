"""Standard error codes for the checkout gateway.

Every failure the gateway reports to a client is a GatewayError carrying one
of these codes. The HTTP layer maps codes to status codes and renders the
`{"error": {"message": ...}}` body.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Stable error codes for gateway failures."""

    # Checkout input errors
    INVALID_QUANTITY = "ERR_CHECKOUT_001"
    MISSING_SESSION_ID = "ERR_CHECKOUT_002"
    UPSTREAM_FAILURE = "ERR_CHECKOUT_003"

    # Webhook signature errors
    SIGNATURE_MALFORMED = "ERR_SIGNATURE_001"
    SIGNATURE_EXPIRED = "ERR_SIGNATURE_002"
    SIGNATURE_MISMATCH = "ERR_SIGNATURE_003"

    # Webhook payload errors
    INVALID_JSON = "ERR_EVENT_001"
    MISSING_TYPE = "ERR_EVENT_002"
    MISSING_EVENT_ID = "ERR_EVENT_003"
    INVALID_SESSION_OBJECT = "ERR_EVENT_004"

    # Delivery errors
    BODY_READ_FAILED = "ERR_DELIVERY_001"
    NOTIFIER_FAILED = "ERR_DELIVERY_002"

    CONFIGURATION_ERROR = "ERR_CONFIG_001"


# Human-readable default messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_QUANTITY: "Quantity must be a positive integer",
    ErrorCode.MISSING_SESSION_ID: "Missing sessionId query parameter",
    ErrorCode.UPSTREAM_FAILURE: "Payment processor request failed",
    ErrorCode.SIGNATURE_MALFORMED: "Unable to parse webhook signature header",
    ErrorCode.SIGNATURE_EXPIRED: "Webhook timestamp outside the tolerance window",
    ErrorCode.SIGNATURE_MISMATCH: "No signatures found matching the expected signature",
    ErrorCode.INVALID_JSON: "Webhook payload is not a valid JSON object",
    ErrorCode.MISSING_TYPE: "Webhook payload has no event type",
    ErrorCode.MISSING_EVENT_ID: "Webhook payload has no event id",
    ErrorCode.INVALID_SESSION_OBJECT: "Unable to read checkout session from event data",
    ErrorCode.BODY_READ_FAILED: "Error reading request body",
    ErrorCode.NOTIFIER_FAILED: "Payment side effects could not be completed",
    ErrorCode.CONFIGURATION_ERROR: "Gateway is not configured correctly",
}


class ErrorMessage(BaseModel):
    """Inner error payload."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned by every endpoint: {"error": {"message": ...}}."""

    model_config = ConfigDict(strict=True)

    error: ErrorMessage

    @classmethod
    def from_message(cls, message: str) -> "ErrorResponse":
        return cls(error=ErrorMessage(message=message))


class GatewayError(Exception):
    """Base exception for gateway failures.

    Carries an ErrorCode so the HTTP layer can pick a status code, and a
    message safe to show to the caller.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: Optional[str] = None,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to the client-facing error body."""
        return ErrorResponse.from_message(self.message)


class SignatureError(GatewayError):
    """Webhook signature verification failed."""


class ParseError(GatewayError):
    """Webhook payload could not be decoded into an event."""


class OrchestratorError(GatewayError):
    """Checkout session could not be created or read."""


class NotifierError(GatewayError):
    """Side-effect notifier failed to complete."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(ErrorCode.NOTIFIER_FAILED, message)


class ConfigurationError(GatewayError):
    """Required configuration is missing or invalid."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(ErrorCode.CONFIGURATION_ERROR, message)
