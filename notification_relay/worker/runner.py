"""Relay worker - runs both queue consumers.

Starts the email consumer and the payment event orchestrator as supervised
tasks on the shared broker connection and stops them on SIGTERM/SIGINT.

Version: 2.0.0
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Any

from pydantic import ValidationError

from notification_relay.config import RelayConfig
from notification_relay.context import ServiceContext
from notification_relay.core.exceptions import RelayError
from notification_relay.core.logger import get_logger, setup_logging
from notification_relay.worker.consumer import QueueConsumer
from notification_relay.worker.email_consumer import EmailConsumer
from notification_relay.worker.payments import PaymentEventOrchestrator

logger = get_logger(__name__)


class RelayWorker:
    """Owns the consumer tasks.

    Stopping cancels the tasks without draining: in-flight messages are
    neither acknowledged nor rejected, so the broker redelivers them.
    """

    def __init__(self, context: ServiceContext) -> None:
        self.context = context
        config = context.config

        self.email_consumer = EmailConsumer(
            context.broker,
            context.dispatcher,
            queue_name=config.EMAILS_QUEUE,
            dead_letter_queue=config.EMAILS_DEAD_LETTER_QUEUE,
            max_attempts=config.EMAIL_MAX_DELIVERY_ATTEMPTS,
        )
        self.payment_consumer = PaymentEventOrchestrator(
            context.broker,
            context.orders,
            context.resolver,
            context.dispatcher,
            context.renderer,
            queue_name=config.PAYMENT_QUEUE,
            paid_status=config.ORDER_PAID_STATUS,
        )

        self._tasks: list[asyncio.Task] = []
        self._stop_event: asyncio.Event | None = None

    @property
    def consumers(self) -> list[QueueConsumer]:
        return [self.email_consumer, self.payment_consumer]

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self) -> None:
        """Start one supervised task per consumer."""
        if self.running:
            return

        config = self.context.config
        logger.info(
            f"Worker Configuration: "
            f"queues={config.EMAILS_QUEUE},{config.PAYMENT_QUEUE} | "
            f"prefetch={config.BROKER_PREFETCH_COUNT} | "
            f"max_attempts={config.EMAIL_MAX_DELIVERY_ATTEMPTS} | "
            f"recipient_sources={config.PAYMENT_RECIPIENT_SOURCES}"
        )

        broker = self.context.broker
        self._tasks = [
            asyncio.create_task(
                broker.supervise(consumer.name, consumer.run),
                name=f"{consumer.name}-consumer",
            )
            for consumer in self.consumers
        ]

    async def stop(self) -> None:
        """Cancel consumer tasks and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._print_stats()

    def stats(self) -> dict[str, dict[str, Any]]:
        """Per-consumer counters."""
        return {
            consumer.name: {
                "queue": consumer.queue_name,
                **consumer.stats.model_dump(),
            }
            for consumer in self.consumers
        }

    def _handle_shutdown(self, signum: int) -> None:
        """Handle shutdown signals gracefully."""
        logger.info(f"Received shutdown signal ({signum}). Stopping gracefully...")
        if self._stop_event is not None:
            self._stop_event.set()

    async def run(self) -> None:
        """Run consumers until SIGTERM/SIGINT."""
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for signum in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(signum, self._handle_shutdown, signum)

        self.start()
        try:
            await self._stop_event.wait()
        finally:
            logger.info("Shutting down relay worker...")
            logger.info("=" * 80)
            await self.stop()
            for signum in (signal.SIGTERM, signal.SIGINT):
                loop.remove_signal_handler(signum)

    def _print_stats(self) -> None:
        """Print consumer statistics on shutdown."""
        logger.info("Relay Worker Statistics:")
        for consumer in self.consumers:
            stats = consumer.stats
            logger.info(
                f"   {consumer.name} ({consumer.queue_name}): "
                f"received={stats.received} acked={stats.acked} "
                f"retried={stats.retried} requeued={stats.requeued} "
                f"dropped={stats.dropped} dead_lettered={stats.dead_lettered} "
                f"success_rate={stats.success_rate():.1f}%"
            )


async def main() -> None:
    """Main entry point for the worker process."""
    try:
        config = RelayConfig()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(
        log_dir=config.LOG_DIR,
        log_level=config.LOG_LEVEL,
        file_level="DEBUG",
        console_level=config.LOG_LEVEL,
        enable_file=config.LOG_TO_FILE,
        settings=config,
    )

    try:
        config.validate_smtp_config()
    except RelayError as e:
        logger.warning(f"{e} Emails will fail until this is fixed.")

    try:
        context = ServiceContext.from_config(config)
    except (RelayError, ValidationError) as e:
        logger.error(f"Worker initialization failed: {e}")
        sys.exit(1)

    try:
        if not await context.mail_sender.verify():
            logger.warning("SMTP connection check failed; deliveries will be retried")

        await RelayWorker(context).run()
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        sys.exit(1)
    finally:
        await context.close()
        logger.info("Relay worker stopped cleanly")
        logger.info("=" * 80)


if __name__ == "__main__":
    asyncio.run(main())
