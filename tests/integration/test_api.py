"""Integration tests for API endpoints.

Tests the FastAPI surface with a mocked service context: health,
queue statistics, test email delivery and payment simulation.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

import json

from notification_relay.broker.connection import BrokerHealth
from notification_relay.core.exceptions import BrokerConnectionError
from notification_relay.models.results import DeliveryResult


class TestHealthEndpoint:
    """Tests for GET /health endpoint."""

    def test_health_check_success(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OK"
        assert data["queues"] == ["emails_queue", "payment_events"]
        assert data["broker"]["connected"] is True
        assert data["consumers"]["email"]["acked"] == 4
        assert "version" in data
        assert "timestamp" in data

    def test_health_check_broker_down(self, test_client, mock_context):
        mock_context.broker.health = BrokerHealth(
            connected=False, last_error="email: connection refused", consecutive_failures=2
        )

        response = test_client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["broker"]["lastError"] == "email: connection refused"
        assert data["broker"]["consecutiveFailures"] == 2


class TestQueueStatusEndpoint:
    """Tests for GET /queue-status endpoint."""

    def test_queue_status_success(self, test_client, mock_context):
        response = test_client.get("/queue-status")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "active"
        assert data["queues"]["emails_queue"] == {"messageCount": 3, "consumerCount": 1}
        assert data["queues"]["emails_queue.dead_letter"]["messageCount"] == 2
        mock_context.broker.get_queue_stats.assert_awaited_once_with(
            ["emails_queue", "payment_events", "emails_queue.dead_letter"]
        )

    def test_queue_status_broker_error(self, test_client, mock_context):
        mock_context.broker.get_queue_stats.side_effect = BrokerConnectionError("unreachable")

        response = test_client.get("/queue-status")

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Error obteniendo estado de las colas"
        assert data["details"] == "unreachable"


class TestTestEmailEndpoint:
    """Tests for POST /test-email endpoint."""

    def test_defaults_used_without_body(self, test_client, mock_context):
        response = test_client.post("/test-email")

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Email de prueba enviado exitosamente"
        assert data["messageId"] == "<test-1@test.com>"
        notification = mock_context.dispatcher.dispatch.call_args.args[0]
        assert notification.recipient == "test@example.com"

    def test_custom_fields(self, test_client, mock_context):
        response = test_client.post(
            "/test-email",
            json={"to": "ana@b.com", "subject": "Hola", "body": "<p>x</p>", "type": "WELCOME"},
        )

        assert response.status_code == 200
        notification = mock_context.dispatcher.dispatch.call_args.args[0]
        assert notification.recipient == "ana@b.com"
        assert notification.subject == "Hola"
        assert notification.email_type.value == "WELCOME"

    def test_blank_recipient_returns_error_body(self, test_client, mock_context):
        response = test_client.post("/test-email", json={"to": "   "})

        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Error enviando email de prueba"
        assert "Recipient cannot be empty" in data["details"]
        mock_context.dispatcher.dispatch.assert_not_called()

    def test_delivery_failure(self, test_client, mock_context):
        mock_context.dispatcher.dispatch.return_value = DeliveryResult.failed("auth failed")

        response = test_client.post("/test-email", json={"to": "ana@b.com"})

        assert response.status_code == 500
        assert response.json() == {
            "error": "Error enviando email de prueba",
            "details": "auth failed",
        }


class TestSimulatePaymentEndpoint:
    """Tests for POST /simulate-payment endpoint."""

    def test_missing_order_id(self, test_client, mock_context):
        response = test_client.post("/simulate-payment", json={"amount": 10})

        assert response.status_code == 400
        assert response.json()["error"] == "orderId es requerido"
        mock_context.broker.publish.assert_not_called()

    def test_defaults_filled_and_published(self, test_client, mock_context):
        response = test_client.post("/simulate-payment", json={"orderId": 42})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Evento de pago simulado enviado"
        assert data["event"]["orderId"] == "42"
        assert data["event"]["userEmail"] == "user42@example.com"
        assert data["event"]["amount"] == 50.0
        assert data["event"]["status"] == "completed"

        queue_name, body = mock_context.broker.publish.call_args.args
        assert queue_name == "payment_events"
        published = json.loads(body)
        assert published["orderId"] == "42"
        assert published["userEmail"] == "user42@example.com"

    def test_explicit_fields_kept(self, test_client, mock_context):
        response = test_client.post(
            "/simulate-payment",
            json={"orderId": "A-1", "userEmail": "ana@b.com", "amount": 12.5, "status": "approved"},
        )

        event = response.json()["event"]
        assert event["userEmail"] == "ana@b.com"
        assert event["amount"] == 12.5
        assert event["status"] == "approved"

    def test_publish_failure(self, test_client, mock_context):
        mock_context.broker.publish.side_effect = BrokerConnectionError("channel closed")

        response = test_client.post("/simulate-payment", json={"orderId": "1"})

        assert response.status_code == 500
        assert response.json()["error"] == "Error simulando pago"
