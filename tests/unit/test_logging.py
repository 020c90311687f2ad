"""Unit tests for structured logging helpers."""

import logging

import pytest

from checkout_core.utils.logging import (
    CorrelationIdFilter,
    StructuredFormatter,
    clear_correlation_id,
    configure_logging,
    get_correlation_id,
    get_logger,
    log_checkout_operation,
    log_webhook_event,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def reset_correlation_id():
    clear_correlation_id()
    yield
    clear_correlation_id()


class TestCorrelationId:
    def test_generates_when_missing(self):
        cid = set_correlation_id()

        assert cid
        assert get_correlation_id() == cid

    def test_keeps_supplied_id(self):
        assert set_correlation_id("req-123") == "req-123"
        assert get_correlation_id() == "req-123"

    def test_clear(self):
        set_correlation_id("req-123")
        clear_correlation_id()

        assert get_correlation_id() is None


class TestFormatter:
    def test_prefixes_correlation_id(self):
        set_correlation_id("req-abc")
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)

        output = StructuredFormatter("%(message)s").format(record)

        assert output == "[req-abc] hello"

    def test_placeholder_without_correlation_id(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", None, None)
        CorrelationIdFilter().filter(record)

        assert StructuredFormatter("%(message)s").format(record) == "[no-correlation-id] hello"

    def test_configure_logging_is_idempotent(self):
        root = logging.getLogger()
        before = list(root.handlers)
        level = root.level
        try:
            configure_logging("DEBUG")
            configure_logging("DEBUG")

            structured = [
                h for h in root.handlers if isinstance(h.formatter, StructuredFormatter)
            ]
            assert len(structured) == 1
        finally:
            root.setLevel(level)
            for handler in list(root.handlers):
                if handler not in before:
                    root.removeHandler(handler)

    def test_get_logger_adds_filter_once(self):
        logger = get_logger("checkout_core.tests.filter")
        get_logger("checkout_core.tests.filter")

        filters = [f for f in logger.filters if isinstance(f, CorrelationIdFilter)]
        assert len(filters) == 1


class TestLogWebhookEvent:
    @pytest.mark.parametrize(
        ("result", "level"),
        [
            ("processed", logging.INFO),
            (None, logging.INFO),
            ("duplicate", logging.WARNING),
            ("skipped", logging.WARNING),
            ("error", logging.ERROR),
        ],
    )
    def test_level_follows_result(self, caplog, result, level):
        logger = logging.getLogger("checkout_core.tests.webhook")

        with caplog.at_level(logging.DEBUG, logger="checkout_core.tests.webhook"):
            log_webhook_event(logger, "checkout.session.completed", "evt_1", result=result)

        assert caplog.records[-1].levelno == level

    def test_message_and_context(self, caplog):
        logger = logging.getLogger("checkout_core.tests.webhook")

        with caplog.at_level(logging.INFO, logger="checkout_core.tests.webhook"):
            log_webhook_event(
                logger,
                "checkout.session.completed",
                "evt_1",
                state="failed",
                result="error",
                error="Notifier failed",
                payment_intent_id="pi_1",
            )

        record = caplog.records[-1]
        assert record.getMessage() == (
            "Webhook event: checkout.session.completed (evt_1)"
            " | state=failed | result=error | error=Notifier failed"
        )
        assert record.event_id == "evt_1"
        assert record.payment_intent_id == "pi_1"


class TestLogCheckoutOperation:
    def test_info_with_context(self, caplog):
        logger = logging.getLogger("checkout_core.tests.checkout")

        with caplog.at_level(logging.INFO, logger="checkout_core.tests.checkout"):
            log_checkout_operation(
                logger, "create_checkout_session", session_id="cs_1", quantity=2
            )

        record = caplog.records[-1]
        assert record.levelno == logging.INFO
        assert record.getMessage() == (
            "Checkout operation: create_checkout_session | session_id=cs_1 | quantity=2"
        )

    def test_error_level_when_failed(self, caplog):
        logger = logging.getLogger("checkout_core.tests.checkout")

        with caplog.at_level(logging.INFO, logger="checkout_core.tests.checkout"):
            log_checkout_operation(logger, "retrieve_price", error="boom")

        assert caplog.records[-1].levelno == logging.ERROR
