"""Pytest configuration and fixtures for checkout gateway tests.

This module provides reusable fixtures for testing:
- Environment configuration for the gateway
- Webhook payload and signature helpers
- Stripe client mocking
- DynamoDB mocking with moto
"""

import hashlib
import hmac
import json
import os
import time
from pathlib import Path
from typing import Any, Generator
from unittest.mock import MagicMock, patch

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before the app is imported
ROOT_DIR = Path(__file__).resolve().parent.parent

TEST_SECRET_KEY = "sk_test_abc123xyz"
TEST_PUBLISHABLE_KEY = "pk_test_abc123xyz"
TEST_WEBHOOK_SECRET = "whsec_test_secret_for_testing"
TEST_PRICE_ID = "price_test_1ABC123"
TEST_DOMAIN = "http://localhost:4242"

os.environ.setdefault("STRIPE_SECRET_KEY", TEST_SECRET_KEY)
os.environ.setdefault("STRIPE_PUBLISHABLE_KEY", TEST_PUBLISHABLE_KEY)
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", TEST_WEBHOOK_SECRET)
os.environ.setdefault("PRICE", TEST_PRICE_ID)
os.environ.setdefault("DOMAIN", TEST_DOMAIN)
os.environ.setdefault("STATIC_DIR", str(ROOT_DIR / "static"))
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")


# === Service Singletons ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Each test gets a fresh config, Stripe service and event log, built
    inside whatever mocks the test has active.
    """
    from checkout_api.dependencies import reset_services
    from checkout_api.main import app

    reset_services()
    yield
    app.dependency_overrides.clear()
    reset_services()


# === Webhook Helpers ===


def sign_payload(payload: bytes, secret: str = TEST_WEBHOOK_SECRET, timestamp: int | None = None) -> str:
    """Create a Stripe-Signature header for a payload.

    Stripe signatures use HMAC-SHA256 with format: t={timestamp},v1={signature}
    """
    ts = int(time.time()) if timestamp is None else timestamp
    signed_payload = f"{ts}.{payload.decode('utf-8')}"
    signature = hmac.new(
        secret.encode("utf-8"),
        signed_payload.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()
    return f"t={ts},v1={signature}"


def make_checkout_completed_event(
    event_id: str = "evt_1ABC123DEF456",
    payment_intent: Any = "pi_3ABC123DEF456",
    payment_status: str = "paid",
    amount_total: int = 3998,
    currency: str = "eur",
) -> dict[str, Any]:
    """Create a checkout.session.completed webhook event."""
    return {
        "id": event_id,
        "object": "event",
        "type": "checkout.session.completed",
        "created": int(time.time()),
        "data": {
            "object": {
                "id": "cs_test_abc123",
                "object": "checkout.session",
                "mode": "payment",
                "payment_intent": payment_intent,
                "payment_status": payment_status,
                "amount_total": amount_total,
                "currency": currency,
            },
        },
    }


def make_unhandled_event(event_id: str = "evt_3GHI789JKL012") -> dict[str, Any]:
    """Create an event type the gateway does not act on."""
    return {
        "id": event_id,
        "object": "event",
        "type": "payment_intent.created",
        "created": int(time.time()),
        "data": {"object": {"id": "pi_test"}},
    }


def encode_event(event: dict[str, Any]) -> bytes:
    return json.dumps(event).encode("utf-8")


@pytest.fixture
def checkout_completed_event() -> dict[str, Any]:
    """Sample checkout.session.completed webhook event."""
    return make_checkout_completed_event()


@pytest.fixture
def unhandled_event() -> dict[str, Any]:
    """Sample event of a type the dispatcher ignores."""
    return make_unhandled_event()


# === Gateway Fixtures ===


@pytest.fixture
def gateway_config():
    """GatewayConfig built from the test environment."""
    from checkout_core.config import GatewayConfig

    return GatewayConfig(
        stripe_secret_key=TEST_SECRET_KEY,
        stripe_publishable_key=TEST_PUBLISHABLE_KEY,
        webhook_secret=TEST_WEBHOOK_SECRET,
        price_id=TEST_PRICE_ID,
        domain=TEST_DOMAIN,
        static_dir=str(ROOT_DIR / "static"),
    )


@pytest.fixture
def mock_stripe_client() -> Generator[MagicMock, None, None]:
    """Mock Stripe client for API calls."""
    with patch("checkout_core.services.stripe_service.StripeClient") as mock_client_class:
        mock_client = MagicMock()
        mock_client_class.return_value = mock_client

        mock_client.checkout.sessions.create.return_value = MagicMock(
            id="cs_test_abc123",
            url="https://checkout.stripe.com/c/pay/cs_test_abc123",
        )
        mock_client.prices.retrieve.return_value = MagicMock(
            id=TEST_PRICE_ID,
            unit_amount=1999,
            currency="eur",
        )
        yield mock_client


@pytest.fixture
def notifier() -> MagicMock:
    """Side-effect notifier double that records calls."""
    return MagicMock(spec=["notify"])


# === AWS Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def processed_events_table(aws_credentials: None) -> Generator[Any, None, None]:
    """Create the processed-webhook-events table in a mocked DynamoDB."""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name="eu-west-1")
        resource.create_table(
            TableName="test-checkout-processed-webhook-events",
            KeySchema=[{"AttributeName": "event_id", "KeyType": "HASH"}],
            AttributeDefinitions=[{"AttributeName": "event_id", "AttributeType": "S"}],
            BillingMode="PAY_PER_REQUEST",
        )
        yield resource
