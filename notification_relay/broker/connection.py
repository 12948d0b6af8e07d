"""RabbitMQ connection manager.

Owns the single robust AMQP connection shared by both consumers and the
HTTP surface, declares queues, publishes persistent messages and keeps
consumer loops alive across broker outages.

Features:
- Lazy robust connection guarded by an asyncio lock
- Per-consumer channels with a prefetch limit
- Supervised consumer loops with exponential reconnect backoff
- Health state for the /health endpoint

Author: Odiseo
Version: 2.1.0
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractQueue, AbstractRobustConnection

from notification_relay.config import RelayConfig
from notification_relay.core.exceptions import BrokerConnectionError
from notification_relay.core.logger import get_logger

logger = get_logger(__name__)


@dataclass
class BrokerHealth:
    """Connection health exposed on /health.

    Attributes:
        connected: Whether the last known connection state is open.
        last_error: Most recent connection or consumer failure.
        last_connected_at: When a consumer last (re)attached.
        consecutive_failures: Failures since the last successful attach.
    """

    connected: bool = False
    last_error: str | None = None
    last_connected_at: datetime | None = None
    consecutive_failures: int = 0

    def as_dict(self) -> dict[str, Any]:
        return {
            "connected": self.connected,
            "lastError": self.last_error,
            "lastConnectedAt": (
                self.last_connected_at.isoformat() if self.last_connected_at else None
            ),
            "consecutiveFailures": self.consecutive_failures,
        }


class BrokerConnectionManager:
    """Manages the AMQP connection and the consumer reconnect policy.

    Attributes:
        config: Relay configuration (broker URL, prefetch, backoff).
        health: Current connection health.
    """

    def __init__(self, config: RelayConfig) -> None:
        """Initialize the manager without connecting.

        Args:
            config: Relay configuration.
        """
        self.config = config
        self.health = BrokerHealth()

        self._connection: AbstractRobustConnection | None = None
        self._lock = asyncio.Lock()
        self._failures: dict[str, int] = {}

    # ========================================================================
    # Connection
    # ========================================================================
    async def connect(self) -> AbstractRobustConnection:
        """Return the open connection, connecting on first use.

        Raises:
            BrokerConnectionError: If the broker cannot be reached in time.
        """
        async with self._lock:
            if self._connection is not None and not self._connection.is_closed:
                return self._connection

            try:
                logger.debug("Connecting to RabbitMQ...")
                connection = await aio_pika.connect_robust(
                    self.config.RABBITMQ_URL,
                    timeout=self.config.BROKER_CONNECT_TIMEOUT_SECONDS,
                )
            except Exception as e:
                self.health.connected = False
                self.health.last_error = str(e) or type(e).__name__
                raise BrokerConnectionError(f"Failed to connect to RabbitMQ: {e}") from e

            connection.close_callbacks.add(self._on_connection_closed)
            connection.reconnect_callbacks.add(self._on_reconnected)

            self._connection = connection
            self.health.connected = True
            logger.info("Connected to RabbitMQ")
            return connection

    def _on_connection_closed(self, *args: Any) -> None:
        error = args[1] if len(args) > 1 else None
        self.health.connected = False
        if error is not None:
            self.health.last_error = str(error)
            logger.warning(f"RabbitMQ connection closed: {error}")

    def _on_reconnected(self, *args: Any) -> None:
        self.health.connected = True
        logger.info("RabbitMQ connection restored")

    async def open_channel(self, prefetch_count: int | None = None) -> AbstractChannel:
        """Open a channel, optionally limiting unacknowledged deliveries.

        Args:
            prefetch_count: Max in-flight messages on this channel.

        Returns:
            Open channel.
        """
        connection = await self.connect()
        channel = await connection.channel()
        if prefetch_count is not None:
            await channel.set_qos(prefetch_count=prefetch_count)
        return channel

    async def open_consumer_channel(self) -> AbstractChannel:
        """Open a channel with the configured consumer prefetch limit."""
        return await self.open_channel(prefetch_count=self.config.BROKER_PREFETCH_COUNT)

    @staticmethod
    async def declare_queue(channel: AbstractChannel, name: str) -> AbstractQueue:
        """Declare a durable queue (idempotent)."""
        return await channel.declare_queue(name, durable=True)

    # ========================================================================
    # One-shot operations
    # ========================================================================
    async def publish(
        self,
        queue_name: str,
        body: bytes | str | dict[str, Any],
        headers: dict[str, Any] | None = None,
        message_id: str | None = None,
        correlation_id: str | None = None,
    ) -> None:
        """Publish a persistent JSON message to a queue.

        Args:
            queue_name: Destination queue (declared if missing).
            body: Encoded body, or a dict serialized as JSON.
            headers: Optional AMQP headers.
            message_id: Message id to carry (kept across retries).
            correlation_id: Correlation id to carry.

        Raises:
            BrokerConnectionError: If the message could not be published.
        """
        if isinstance(body, dict):
            body = json.dumps(body, default=str)
        if isinstance(body, str):
            body = body.encode("utf-8")

        try:
            channel = await self.open_channel()
            try:
                await self.declare_queue(channel, queue_name)
                await channel.default_exchange.publish(
                    aio_pika.Message(
                        body=body,
                        content_type="application/json",
                        delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                        headers=headers or {},
                        message_id=message_id,
                        correlation_id=correlation_id,
                    ),
                    routing_key=queue_name,
                )
            finally:
                await channel.close()
        except BrokerConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to publish to {queue_name}: {e}")
            raise BrokerConnectionError(
                f"Failed to publish to {queue_name}: {e}", queue_name=queue_name
            ) from e

        logger.debug(f"Published {len(body)} bytes to {queue_name}")

    async def get_queue_stats(self, names: list[str]) -> dict[str, dict[str, int]]:
        """Return message and consumer counts per queue.

        Raises:
            BrokerConnectionError: If the broker cannot be queried.
        """
        stats: dict[str, dict[str, int]] = {}
        try:
            channel = await self.open_channel()
            try:
                for name in names:
                    queue = await self.declare_queue(channel, name)
                    result = queue.declaration_result
                    stats[name] = {
                        "messageCount": result.message_count or 0,
                        "consumerCount": result.consumer_count or 0,
                    }
            finally:
                await channel.close()
        except BrokerConnectionError:
            raise
        except Exception as e:
            logger.error(f"Failed to read queue statistics: {e}")
            raise BrokerConnectionError(f"Failed to read queue statistics: {e}") from e

        return stats

    # ========================================================================
    # Supervision
    # ========================================================================
    def reconnect_delay(self, failures: int) -> float:
        """Delay before the next attempt after `failures` consecutive failures."""
        base = self.config.BROKER_RECONNECT_DELAY_SECONDS
        cap = self.config.BROKER_RECONNECT_MAX_DELAY_SECONDS
        return min(base * 2 ** max(failures - 1, 0), cap)

    def mark_connected(self, name: str) -> None:
        """Record that a supervised consumer attached successfully."""
        self._failures[name] = 0
        self.health.connected = True
        self.health.consecutive_failures = sum(self._failures.values())
        self.health.last_connected_at = datetime.now(timezone.utc)

    def _mark_failed(self, name: str, error: BaseException) -> int:
        failures = self._failures.get(name, 0) + 1
        self._failures[name] = failures
        self.health.consecutive_failures = sum(self._failures.values())
        self.health.last_error = f"{name}: {error}" if str(error) else name
        if self._connection is None or self._connection.is_closed:
            self.health.connected = False
        return failures

    async def supervise(self, name: str, runner: Callable[[], Awaitable[None]]) -> None:
        """Run a consumer loop forever, reconnecting after any failure.

        The runner should call mark_connected(name) once it is consuming.
        A runner that returns is treated as a failure. Only cancellation
        ends supervision.

        Args:
            name: Consumer name for logs and health.
            runner: Coroutine function running one consume session.
        """
        while True:
            try:
                await runner()
                error: BaseException = BrokerConnectionError(
                    f"{name} consumer stopped receiving messages"
                )
            except asyncio.CancelledError:
                logger.info(f"{name} consumer cancelled")
                raise
            except Exception as e:
                error = e

            failures = self._mark_failed(name, error)
            delay = self.reconnect_delay(failures)
            logger.error(
                f"{name} consumer failed ({failures} in a row): {error}. "
                f"Reconnecting in {delay:.0f}s"
            )
            await asyncio.sleep(delay)

    async def close(self) -> None:
        """Close the connection if open."""
        async with self._lock:
            if self._connection is not None and not self._connection.is_closed:
                try:
                    await self._connection.close()
                except Exception as e:
                    logger.warning(f"Error closing RabbitMQ connection: {e}")
            self._connection = None
            self.health.connected = False
            logger.debug("Broker connection manager closed")
