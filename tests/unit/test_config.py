"""Unit tests for relay configuration.

Tests defaults, legacy variable names and field validation.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from notification_relay.config import RelayConfig
from notification_relay.core.exceptions import RelayConfigError


def _config(**overrides) -> RelayConfig:
    return RelayConfig(_env_file=None, **overrides)


class TestDefaults:
    """Tests for default values."""

    def test_queue_defaults(self):
        config = _config()

        assert config.EMAILS_QUEUE == "emails_queue"
        assert config.PAYMENT_QUEUE == "payment_events"
        assert config.EMAILS_DEAD_LETTER_QUEUE == "emails_queue.dead_letter"
        assert config.consumed_queues == ["emails_queue", "payment_events"]

    def test_broker_defaults(self):
        config = _config()

        assert config.BROKER_PREFETCH_COUNT == 1
        assert config.BROKER_RECONNECT_DELAY_SECONDS == 5.0
        assert config.EMAIL_MAX_DELIVERY_ATTEMPTS == 5

    def test_recipient_sources_default_prefers_event(self):
        assert _config().recipient_sources == ["event", "token"]

    def test_paid_status_default(self):
        assert _config().ORDER_PAID_STATUS == "paid"


class TestLegacyVariables:
    """Tests for variable names used by earlier deployments."""

    def test_port_alias(self, monkeypatch):
        monkeypatch.delenv("API_PORT", raising=False)
        monkeypatch.setenv("PORT", "4100")

        assert _config().API_PORT == 4100

    def test_email_user_and_password_aliases(self, monkeypatch):
        monkeypatch.delenv("SMTP_USER", raising=False)
        monkeypatch.delenv("SMTP_PASSWORD", raising=False)
        monkeypatch.setenv("EMAIL_USER", "mailer@test.com")
        monkeypatch.setenv("EMAIL_PASSWORD", "abcd efgh ijkl mnop")

        config = _config()

        assert config.SMTP_USER == "mailer@test.com"
        assert config.SMTP_PASSWORD == "abcdefghijklmnop"


class TestValidation:
    """Tests for field validators."""

    def test_orders_url_trailing_slash_removed(self):
        assert _config(ORDERS_SERVICE_URL="http://orders:3000/").ORDERS_SERVICE_URL == (
            "http://orders:3000"
        )

    def test_bearer_prefix_removed_from_token(self):
        assert _config(JWT_TOKEN="Bearer abc.def.ghi").JWT_TOKEN == "abc.def.ghi"

    def test_recipient_sources_normalized(self):
        config = _config(PAYMENT_RECIPIENT_SOURCES=" Order , TOKEN,event ")

        assert config.recipient_sources == ["order", "token", "event"]

    def test_unknown_recipient_source_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            _config(PAYMENT_RECIPIENT_SOURCES="event,header")

        assert "header" in str(exc_info.value)

    def test_empty_recipient_sources_rejected(self):
        with pytest.raises(ValidationError):
            _config(PAYMENT_RECIPIENT_SOURCES=" , ")

    def test_negative_attempts_rejected(self):
        with pytest.raises(ValidationError):
            _config(EMAIL_MAX_DELIVERY_ATTEMPTS=-1)

    def test_zero_attempts_allowed(self):
        assert _config(EMAIL_MAX_DELIVERY_ATTEMPTS=0).EMAIL_MAX_DELIVERY_ATTEMPTS == 0


class TestSMTPConfig:
    """Tests for SMTP helpers."""

    def test_validate_smtp_config_missing(self):
        config = _config(SMTP_USER="", SMTP_PASSWORD="")

        with pytest.raises(RelayConfigError) as exc_info:
            config.validate_smtp_config()

        assert "SMTP_USER" in str(exc_info.value)
        assert "SMTP_PASSWORD" in str(exc_info.value)

    def test_get_smtp_config(self, relay_config):
        smtp = relay_config.get_smtp_config()

        assert smtp["host"] == "smtp.test.com"
        assert smtp["username"] == "test@test.com"
        assert smtp["from_email"] == "noreply@test.com"
