"""Queue consumer base.

A consumer runs one consume session per call to run(): open a channel with
the prefetch limit, declare the queue, and handle deliveries until the
iterator ends or the channel fails. The broker manager supervises run()
and reconnects. Subclasses only decide a ConsumeResult per message;
settlement against the broker happens here.

Version: 2.0.0
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from aio_pika.abc import AbstractIncomingMessage

from notification_relay.broker.connection import BrokerConnectionManager
from notification_relay.core.exceptions import BrokerConnectionError
from notification_relay.core.logger import get_logger
from notification_relay.models.results import ConsumeResult, MessageOutcome
from notification_relay.models.stats import ConsumerStats

logger = get_logger(__name__)


class QueueConsumer(ABC):
    """Base class for the relay's queue consumers.

    Attributes:
        name: Consumer name used in logs and health output.
        broker: Shared connection manager.
        queue_name: Queue consumed from.
        dead_letter_queue: Destination for DEAD_LETTER outcomes, if any.
        stats: Message counters.
    """

    name = "consumer"

    def __init__(
        self,
        broker: BrokerConnectionManager,
        queue_name: str,
        dead_letter_queue: str | None = None,
    ) -> None:
        self.broker = broker
        self.queue_name = queue_name
        self.dead_letter_queue = dead_letter_queue
        self.stats = ConsumerStats()

    @abstractmethod
    async def process(self, message: AbstractIncomingMessage) -> ConsumeResult:
        """Decide how a delivered message is settled."""

    async def run(self) -> None:
        """Consume until the channel fails or the iterator ends."""
        channel = await self.broker.open_consumer_channel()
        try:
            queue = await self.broker.declare_queue(channel, self.queue_name)
            self.broker.mark_connected(self.name)
            logger.info(f"{self.name}: waiting for messages on '{self.queue_name}'")

            async with queue.iterator() as queue_iter:
                async for message in queue_iter:
                    await self.handle(message)
        finally:
            if not channel.is_closed:
                try:
                    await channel.close()
                except Exception as e:
                    logger.debug(f"{self.name}: error closing channel (non-critical): {e}")

    async def handle(self, message: AbstractIncomingMessage) -> ConsumeResult:
        """Process and settle one delivery."""
        self.stats.received += 1
        try:
            result = await self.process(message)
        except Exception as e:
            logger.error(
                f"{self.name}: unexpected error processing message: {e}", exc_info=True
            )
            result = ConsumeResult.drop(f"Unexpected error: {e}")

        return await self.settle(message, result)

    async def settle(
        self, message: AbstractIncomingMessage, result: ConsumeResult
    ) -> ConsumeResult:
        """Apply a ConsumeResult to the delivery.

        RETRY and DEAD_LETTER publish a copy before acknowledging the
        original. If that publish fails the original is requeued instead,
        so the message is never lost.

        Returns:
            The result actually applied.
        """
        if result.outcome == MessageOutcome.RETRY:
            result = await self._republish(message, self.queue_name, result)
        elif result.outcome == MessageOutcome.DEAD_LETTER:
            if self.dead_letter_queue:
                result = await self._republish(message, self.dead_letter_queue, result)
            else:
                logger.error(f"{self.name}: no dead-letter queue configured, dropping")
                result = ConsumeResult.drop(result.reason)

        if result.outcome in (
            MessageOutcome.ACK,
            MessageOutcome.RETRY,
            MessageOutcome.DEAD_LETTER,
        ):
            await message.ack()
        elif result.outcome == MessageOutcome.REQUEUE:
            await message.nack(requeue=True)
        else:
            await message.reject(requeue=False)

        self.stats.record(result.outcome)
        logger.debug(f"{self.name}: settled as {result.outcome.value} ({result.reason})")
        return result

    async def _republish(
        self, message: AbstractIncomingMessage, queue_name: str, result: ConsumeResult
    ) -> ConsumeResult:
        try:
            await self.broker.publish(
                queue_name,
                message.body,
                headers=result.headers,
                message_id=message.message_id,
                correlation_id=message.correlation_id,
            )
        except BrokerConnectionError as e:
            logger.error(f"{self.name}: could not republish to {queue_name}: {e}")
            return ConsumeResult.requeue(f"republish failed: {e}")
        return result
