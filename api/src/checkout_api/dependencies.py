"""FastAPI dependency injection providers for gateway services.

Factory functions use @lru_cache so each service is built once per process
from the single GatewayConfig. Services are lazily instantiated, so importing
the app does not require configuration to be present.

Usage in routes:
    from checkout_api.dependencies import get_orchestrator

    @router.post("/create-checkout-session")
    def create_checkout_session(
        orchestrator: CheckoutOrchestrator = Depends(get_orchestrator),
    ):
        ...

Service Dependency Graph:
    GatewayConfig (get_config, from environment / SSM)
        ├── StripeService
        │       └── CheckoutOrchestrator
        └── ProcessedEventLog + PaymentNotifier
                └── WebhookDispatcher

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from checkout_core.config import GatewayConfig
from checkout_core.services.checkout_orchestrator import CheckoutOrchestrator
from checkout_core.services.notifier import PaymentNotifier, SideEffectNotifier
from checkout_core.services.processed_event_log import (
    DynamoDBProcessedEventLog,
    InMemoryProcessedEventLog,
    ProcessedEventLog,
)
from checkout_core.services.stripe_service import StripeService
from checkout_core.services.webhook_dispatcher import WebhookDispatcher


@lru_cache
def get_config() -> GatewayConfig:
    """Get the process-wide configuration, loaded from the environment."""
    return GatewayConfig.from_env()


@lru_cache
def get_stripe_service() -> StripeService:
    """Get cached StripeService instance."""
    config = get_config()
    return StripeService(
        config.stripe_secret_key,
        timeout=config.stripe_timeout_seconds,
    )


@lru_cache
def get_event_log() -> ProcessedEventLog:
    """Get the processed-event log selected by PROCESSED_EVENT_STORE.

    Returns:
        DynamoDB-backed log for multi-instance deployments, otherwise an
        in-memory log.
    """
    config = get_config()
    if config.processed_event_store == "dynamodb":
        return DynamoDBProcessedEventLog(
            config.dynamodb_table_prefix,
            claim_ttl_seconds=config.event_claim_ttl_seconds,
            retention_days=config.processed_event_retention_days,
        )
    return InMemoryProcessedEventLog(
        claim_ttl_seconds=config.event_claim_ttl_seconds,
        retention_days=config.processed_event_retention_days,
    )


@lru_cache
def get_notifier() -> SideEffectNotifier:
    """Get cached side-effect notifier."""
    return PaymentNotifier()


@lru_cache
def get_orchestrator() -> CheckoutOrchestrator:
    """Get cached CheckoutOrchestrator instance."""
    return CheckoutOrchestrator(get_config(), get_stripe_service())


@lru_cache
def get_dispatcher() -> WebhookDispatcher:
    """Get cached WebhookDispatcher instance."""
    config = get_config()
    return WebhookDispatcher(
        config.webhook_secret,
        get_event_log(),
        get_notifier(),
        tolerance=config.webhook_tolerance_seconds,
        notifier_timeout=config.notifier_timeout_seconds,
    )


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    """
    if get_dispatcher.cache_info().currsize:
        get_dispatcher().close()

    get_dispatcher.cache_clear()
    get_orchestrator.cache_clear()
    get_notifier.cache_clear()
    get_event_log.cache_clear()
    get_stripe_service.cache_clear()
    get_config.cache_clear()
