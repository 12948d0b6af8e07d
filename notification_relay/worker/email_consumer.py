"""Email queue consumer.

Parses EmailNotification messages, dispatches them and applies the bounded
retry policy: failed deliveries are republished with an attempt counter
header and moved to the dead-letter queue once the cap is reached.

Version: 2.0.0
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from aio_pika.abc import AbstractIncomingMessage

from notification_relay.broker.connection import BrokerConnectionManager
from notification_relay.core.exceptions import MalformedMessageError
from notification_relay.core.logger import get_logger, log_context
from notification_relay.models.email import EmailNotification
from notification_relay.models.results import ConsumeResult
from notification_relay.worker.consumer import QueueConsumer
from notification_relay.worker.dispatcher import EmailDispatcher

logger = get_logger(__name__)

ATTEMPTS_HEADER = "x-delivery-attempts"
LAST_ERROR_HEADER = "x-last-error"


def delivery_attempts(headers: Mapping[str, Any] | None) -> int:
    """Failed attempts recorded on a message (0 when absent or unreadable)."""
    if not headers:
        return 0
    value = headers.get(ATTEMPTS_HEADER)
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="ignore")
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


class EmailConsumer(QueueConsumer):
    """Consumer for the email-delivery queue.

    Attributes:
        dispatcher: Composes and sends the email.
        max_attempts: Attempts before dead-lettering; 0 requeues forever.
    """

    name = "email"

    def __init__(
        self,
        broker: BrokerConnectionManager,
        dispatcher: EmailDispatcher,
        queue_name: str = "emails_queue",
        dead_letter_queue: str | None = "emails_queue.dead_letter",
        max_attempts: int = 5,
    ) -> None:
        super().__init__(broker, queue_name, dead_letter_queue=dead_letter_queue)
        self.dispatcher = dispatcher
        self.max_attempts = max_attempts

    async def process(self, message: AbstractIncomingMessage) -> ConsumeResult:
        try:
            notification = EmailNotification.parse_message(
                message.body, queue_name=self.queue_name
            )
        except MalformedMessageError as e:
            logger.error(f"DROPPED malformed email message: {e}")
            return ConsumeResult.drop(str(e))

        ctx = log_context(
            "deliver_email",
            message_id=message.message_id,
            recipient=notification.recipient,
            type=notification.type or "General",
        )
        logger.info(f"Received: {ctx}")

        result = await self.dispatcher.dispatch(notification)

        if result.success:
            logger.info(f"SENT: {ctx} | message_id={result.message_id}")
            return ConsumeResult.ack(f"sent {result.message_id}")

        return self.failure_result(message.headers, result.error or "delivery failed", ctx)

    def failure_result(
        self, headers: Mapping[str, Any] | None, error: str, ctx: str = ""
    ) -> ConsumeResult:
        """Decide what happens to a message whose delivery failed."""
        if self.max_attempts == 0:
            logger.warning(f"REQUEUED: {ctx} | error={error[:100]}")
            return ConsumeResult.requeue(error)

        attempts = delivery_attempts(headers) + 1
        retry_headers = dict(headers or {})
        retry_headers[ATTEMPTS_HEADER] = attempts
        retry_headers[LAST_ERROR_HEADER] = error[:500]

        if attempts < self.max_attempts:
            logger.warning(
                f"RETRY SCHEDULED: {ctx} | attempt {attempts}/{self.max_attempts} | "
                f"error={error[:100]}"
            )
            return ConsumeResult.retry(error, retry_headers)

        logger.critical(
            f"DEAD-LETTERED: {ctx} | max_attempts_exceeded={self.max_attempts} | "
            f"error={error[:100]}"
        )
        return ConsumeResult.dead_letter(error, retry_headers)
