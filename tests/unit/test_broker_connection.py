"""Unit tests for the broker connection manager.

Covers channel setup, publishing, queue statistics and the supervised
reconnect loop. aio-pika is mocked; no broker is required.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from notification_relay.broker.connection import BrokerConnectionManager, BrokerHealth
from notification_relay.core.exceptions import BrokerConnectionError


@pytest.fixture
def channel() -> MagicMock:
    channel = MagicMock()
    channel.set_qos = AsyncMock()
    channel.close = AsyncMock()
    channel.declare_queue = AsyncMock()
    channel.default_exchange.publish = AsyncMock()
    return channel


@pytest.fixture
def connection(channel) -> MagicMock:
    connection = MagicMock()
    connection.is_closed = False
    connection.channel = AsyncMock(return_value=channel)
    connection.close = AsyncMock()
    return connection


@pytest.fixture
def manager(relay_config) -> BrokerConnectionManager:
    return BrokerConnectionManager(relay_config)


class TestConnect:
    """Tests for lazy connection handling."""

    @pytest.mark.asyncio
    async def test_connects_once(self, manager, connection):
        with patch("aio_pika.connect_robust", AsyncMock(return_value=connection)) as connect:
            first = await manager.connect()
            second = await manager.connect()

        assert first is second is connection
        connect.assert_awaited_once()
        assert manager.health.connected is True

    @pytest.mark.asyncio
    async def test_connect_failure_wrapped(self, manager):
        with patch("aio_pika.connect_robust", AsyncMock(side_effect=OSError("refused"))):
            with pytest.raises(BrokerConnectionError):
                await manager.connect()

        assert manager.health.connected is False
        assert manager.health.last_error == "refused"

    @pytest.mark.asyncio
    async def test_consumer_channel_has_prefetch_one(self, manager, connection, channel):
        with patch("aio_pika.connect_robust", AsyncMock(return_value=connection)):
            result = await manager.open_consumer_channel()

        assert result is channel
        channel.set_qos.assert_awaited_once_with(prefetch_count=1)

    def test_close_callback_marks_disconnected(self, manager):
        manager.health.connected = True

        manager._on_connection_closed(None, ConnectionResetError("reset"))

        assert manager.health.connected is False
        assert manager.health.last_error == "reset"


class TestPublish:
    """Tests for one-shot publishing."""

    @pytest.mark.asyncio
    async def test_publish_persistent_json(self, manager, connection, channel):
        with patch("aio_pika.connect_robust", AsyncMock(return_value=connection)):
            await manager.publish("payment_events", {"orderId": "1"}, headers={"x": 1})

        channel.declare_queue.assert_awaited_once_with("payment_events", durable=True)
        message = channel.default_exchange.publish.call_args.args[0]
        assert message.body == b'{"orderId": "1"}'
        assert message.headers == {"x": 1}
        assert int(message.delivery_mode) == 2
        assert channel.default_exchange.publish.call_args.kwargs["routing_key"] == "payment_events"
        channel.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_carries_message_and_correlation_ids(
        self, manager, connection, channel
    ):
        with patch("aio_pika.connect_robust", AsyncMock(return_value=connection)):
            await manager.publish(
                "emails_queue", b"{}", message_id="email-77", correlation_id="order-9"
            )

        message = channel.default_exchange.publish.call_args.args[0]
        assert message.message_id == "email-77"
        assert message.correlation_id == "order-9"

    @pytest.mark.asyncio
    async def test_publish_failure_raises(self, manager, connection, channel):
        channel.default_exchange.publish.side_effect = RuntimeError("channel closed")

        with patch("aio_pika.connect_robust", AsyncMock(return_value=connection)):
            with pytest.raises(BrokerConnectionError) as exc_info:
                await manager.publish("emails_queue", b"{}")

        assert "emails_queue" in str(exc_info.value)
        channel.close.assert_awaited_once()


class TestQueueStats:
    """Tests for queue statistics."""

    @pytest.mark.asyncio
    async def test_counts_per_queue(self, manager, connection, channel):
        def declared(name, durable):
            queue = MagicMock()
            queue.declaration_result.message_count = len(name)
            queue.declaration_result.consumer_count = 1
            return queue

        channel.declare_queue.side_effect = declared

        with patch("aio_pika.connect_robust", AsyncMock(return_value=connection)):
            stats = await manager.get_queue_stats(["a", "bbb"])

        assert stats == {
            "a": {"messageCount": 1, "consumerCount": 1},
            "bbb": {"messageCount": 3, "consumerCount": 1},
        }


class TestSupervision:
    """Tests for the reconnect policy."""

    def test_backoff_schedule(self, manager):
        delays = [manager.reconnect_delay(n) for n in range(1, 7)]

        assert delays == [5, 10, 20, 40, 60, 60]

    @pytest.mark.asyncio
    async def test_supervise_retries_with_backoff(self, manager):
        runner = AsyncMock(
            side_effect=[
                BrokerConnectionError("down"),
                BrokerConnectionError("down"),
                None,
                asyncio.CancelledError(),
            ]
        )
        sleep = AsyncMock()

        with patch("notification_relay.broker.connection.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await manager.supervise("email", runner)

        assert runner.await_count == 4
        assert [c.args[0] for c in sleep.await_args_list] == [5, 10, 20]
        assert manager.health.consecutive_failures == 3
        assert "email" in manager.health.last_error

    @pytest.mark.asyncio
    async def test_mark_connected_resets_failures(self, manager):
        async def runner():
            manager.mark_connected("payment")
            raise BrokerConnectionError("lost")

        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])

        with patch("notification_relay.broker.connection.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await manager.supervise("payment", runner)

        # Each session attached before failing, so the delay never grows
        assert [c.args[0] for c in sleep.await_args_list] == [5, 5]
        assert manager.health.last_connected_at is not None


def test_health_as_dict():
    health = BrokerHealth(connected=True, consecutive_failures=2)

    assert health.as_dict() == {
        "connected": True,
        "lastError": None,
        "lastConnectedAt": None,
        "consecutiveFailures": 2,
    }
