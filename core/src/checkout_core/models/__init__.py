"""Pydantic models for the checkout gateway."""

from .checkout import (
    CHECKOUT_SESSION_ID_PLACEHOLDER,
    CheckoutSession,
    LineItem,
    PriceDetails,
    PurchaseRequest,
)
from .errors import (
    ERROR_MESSAGES,
    ConfigurationError,
    ErrorCode,
    ErrorResponse,
    GatewayError,
    NotifierError,
    OrchestratorError,
    ParseError,
    SignatureError,
)
from .events import (
    DeliveryState,
    DispatchResult,
    EventType,
    PaymentResult,
    PaymentStatus,
    VerifiedEvent,
)
from .processed_event import ClaimStatus, ProcessedEventRecord

__all__ = [
    # Checkout
    "CHECKOUT_SESSION_ID_PLACEHOLDER",
    "CheckoutSession",
    "LineItem",
    "PriceDetails",
    "PurchaseRequest",
    # Events
    "DeliveryState",
    "DispatchResult",
    "EventType",
    "PaymentResult",
    "PaymentStatus",
    "VerifiedEvent",
    # Event log
    "ClaimStatus",
    "ProcessedEventRecord",
    # Errors
    "ERROR_MESSAGES",
    "ConfigurationError",
    "ErrorCode",
    "ErrorResponse",
    "GatewayError",
    "NotifierError",
    "OrchestratorError",
    "ParseError",
    "SignatureError",
]
