"""Backend services for the checkout gateway."""

from .checkout_orchestrator import CheckoutOrchestrator
from .notifier import PaymentNotifier, SideEffectNotifier
from .processed_event_log import (
    DynamoDBProcessedEventLog,
    EventLogError,
    InMemoryProcessedEventLog,
    ProcessedEventLog,
)
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import StripeService, StripeServiceError
from .webhook_dispatcher import WebhookDispatcher

__all__ = [
    "CheckoutOrchestrator",
    "DynamoDBProcessedEventLog",
    "EventLogError",
    "InMemoryProcessedEventLog",
    "PaymentNotifier",
    "ProcessedEventLog",
    "SSMService",
    "SSMServiceError",
    "SideEffectNotifier",
    "StripeService",
    "StripeServiceError",
    "WebhookDispatcher",
    "get_ssm_service",
]
