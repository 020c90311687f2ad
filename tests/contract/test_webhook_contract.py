"""Contract tests for POST /webhook.

Test categories:
- Signature validation (400)
- Payload validation (400)
- Idempotent duplicate handling (200), event still in flight (409)
- checkout.session.completed processing (200)
- Unhandled event types (200 - skipped)
- Side-effect failure (500) and body read failure (503)
"""

import threading
from collections.abc import Generator
from typing import Any

import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from checkout_api.dependencies import get_dispatcher
from checkout_api.main import app
from checkout_core.models.errors import NotifierError
from checkout_core.services.processed_event_log import InMemoryProcessedEventLog
from checkout_core.services.webhook_dispatcher import WebhookDispatcher
from conftest import (
    TEST_WEBHOOK_SECRET,
    encode_event,
    make_checkout_completed_event,
    sign_payload,
)


# === Fixtures ===


@pytest.fixture
def event_log() -> InMemoryProcessedEventLog:
    return InMemoryProcessedEventLog()


@pytest.fixture
def client(event_log, notifier) -> Generator[TestClient, None, None]:
    """Test client whose dispatcher uses the recording notifier."""
    dispatcher = WebhookDispatcher(TEST_WEBHOOK_SECRET, event_log, notifier)
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    yield TestClient(app)
    dispatcher.close()


def post_event(client: TestClient, event: dict[str, Any], **sign_kwargs: Any):
    payload = encode_event(event)
    return client.post(
        "/webhook",
        content=payload,
        headers={
            "Stripe-Signature": sign_payload(payload, **sign_kwargs),
            "Content-Type": "application/json",
        },
    )


# === Signature Validation ===


class TestWebhookSignatureValidation:
    """Requests that fail authentication never reach the notifier."""

    def test_missing_signature_returns_400(self, client, notifier, checkout_completed_event):
        response = client.post("/webhook", content=encode_event(checkout_completed_event))

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json() == {
            "error": {"message": "Unable to parse webhook signature header"}
        }
        notifier.notify.assert_not_called()

    def test_wrong_secret_returns_400(self, client, notifier, checkout_completed_event):
        response = post_event(client, checkout_completed_event, secret="whsec_wrong_secret")

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert "signature" in response.json()["error"]["message"]
        notifier.notify.assert_not_called()

    def test_tampered_body_returns_400(self, client, notifier, checkout_completed_event):
        payload = encode_event(checkout_completed_event)
        header = sign_payload(payload)
        tampered = payload.replace(b'"amount_total": 3998', b'"amount_total": 1')

        response = client.post(
            "/webhook", content=tampered, headers={"Stripe-Signature": header}
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        notifier.notify.assert_not_called()

    def test_expired_timestamp_returns_400(self, client, notifier, checkout_completed_event):
        response = post_event(client, checkout_completed_event, timestamp=1_000_000)

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert "tolerance" in response.json()["error"]["message"]
        notifier.notify.assert_not_called()

    def test_error_body_never_echoes_secret(self, client, checkout_completed_event):
        response = post_event(client, checkout_completed_event, secret="whsec_wrong_secret")

        assert TEST_WEBHOOK_SECRET not in response.text
        assert "whsec_wrong_secret" not in response.text


# === Payload Validation ===


class TestWebhookPayloadValidation:
    def test_signed_invalid_json_returns_400(self, client, notifier):
        payload = b"{this is not json"
        response = client.post(
            "/webhook", content=payload, headers={"Stripe-Signature": sign_payload(payload)}
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json() == {
            "error": {"message": "Webhook payload is not a valid JSON object"}
        }
        notifier.notify.assert_not_called()

    def test_event_without_type_returns_400(self, client):
        response = post_event(client, {"id": "evt_no_type", "data": {}})

        assert response.status_code == HTTP_400_BAD_REQUEST

    def test_event_without_id_returns_400(self, client):
        response = post_event(client, {"type": "checkout.session.completed", "data": {}})

        assert response.status_code == HTTP_400_BAD_REQUEST

    def test_unreadable_session_returns_400(self, client, notifier):
        event = make_checkout_completed_event()
        event["data"]["object"]["currency"] = None

        response = post_event(client, event)

        assert response.status_code == HTTP_400_BAD_REQUEST
        notifier.notify.assert_not_called()


# === checkout.session.completed ===


class TestWebhookCheckoutCompleted:
    def test_processes_event(self, client, notifier, event_log, checkout_completed_event):
        response = post_event(client, checkout_completed_event)

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["received"] is True
        assert data["eventId"] == "evt_1ABC123DEF456"
        assert data["eventType"] == "checkout.session.completed"
        assert data["processingResult"] == "processed"

        notifier.notify.assert_called_once()
        payment = notifier.notify.call_args.args[0]
        assert payment.to_notification() == {
            "paymentIntentID": "pi_3ABC123DEF456",
            "paymentStatus": "succeeded",
            "paymentAmount": 3998,
            "currency": "eur",
        }
        assert event_log.is_processed("evt_1ABC123DEF456")

    def test_duplicate_delivery_is_acknowledged_once(
        self, client, notifier, checkout_completed_event
    ):
        first = post_event(client, checkout_completed_event)
        second = post_event(client, checkout_completed_event)

        assert first.status_code == HTTP_200_OK
        assert second.status_code == HTTP_200_OK
        assert first.json()["processingResult"] == "processed"
        assert second.json()["processingResult"] == "duplicate"
        assert notifier.notify.call_count == 1


# === Unhandled Event Types ===


class TestWebhookUnhandledEvents:
    def test_unhandled_event_is_skipped(self, client, notifier, unhandled_event):
        response = post_event(client, unhandled_event)

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["processingResult"] == "skipped"
        assert data["eventType"] == "payment_intent.created"
        notifier.notify.assert_not_called()


# === Failures ===


class TestWebhookFailures:
    def test_notifier_failure_returns_500_and_allows_retry(
        self, client, notifier, event_log, checkout_completed_event
    ):
        notifier.notify.side_effect = [NotifierError("SMTP unavailable"), None]

        first = post_event(client, checkout_completed_event)
        second = post_event(client, checkout_completed_event)

        assert first.status_code == HTTP_500_INTERNAL_SERVER_ERROR
        assert "SMTP unavailable" in first.json()["error"]["message"]
        assert second.status_code == HTTP_200_OK
        assert second.json()["processingResult"] == "processed"
        assert notifier.notify.call_count == 2

    def test_delivery_while_event_in_flight_returns_409(
        self, client, notifier, event_log, checkout_completed_event
    ):
        started = threading.Event()
        release = threading.Event()

        def slow_notify(payment):
            started.set()
            release.wait(5)
            raise NotifierError("ledger unavailable")

        notifier.notify.side_effect = slow_notify
        holder = []
        thread = threading.Thread(
            target=lambda: holder.append(post_event(client, checkout_completed_event))
        )
        thread.start()
        try:
            assert started.wait(2)
            concurrent = post_event(client, checkout_completed_event)
        finally:
            release.set()
            thread.join()

        assert concurrent.status_code == HTTP_409_CONFLICT
        assert "another delivery" in concurrent.json()["error"]["message"]
        assert holder[0].status_code == HTTP_500_INTERNAL_SERVER_ERROR
        assert not event_log.is_processed("evt_1ABC123DEF456")
        assert notifier.notify.call_count == 1

    def test_oversize_body_returns_503(self, client, notifier):
        payload = b"x" * 65537

        response = client.post(
            "/webhook", content=payload, headers={"Stripe-Signature": sign_payload(payload)}
        )

        assert response.status_code == HTTP_503_SERVICE_UNAVAILABLE
        assert response.json() == {"error": {"message": "Error reading request body"}}
        notifier.notify.assert_not_called()

    def test_body_at_limit_is_read(self, client):
        payload = b" " * 65536

        response = client.post(
            "/webhook", content=payload, headers={"Stripe-Signature": sign_payload(payload)}
        )

        # Read successfully; rejected later as a payload error
        assert response.status_code == HTTP_400_BAD_REQUEST

    def test_default_dispatcher_from_environment(self, checkout_completed_event):
        """Without overrides the dispatcher is built from the environment."""
        app.dependency_overrides.clear()

        response = post_event(TestClient(app), checkout_completed_event)

        assert response.status_code == HTTP_200_OK
        assert response.json()["processingResult"] == "processed"
