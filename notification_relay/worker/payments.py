"""Payment event orchestration.

For each payment event: mark the order paid in the order service, and only
if that succeeded resolve a recipient and send a payment confirmation.
Payment events are processed at most once: every parsed event is
acknowledged whatever the downstream outcome.

Version: 2.0.0
"""

from __future__ import annotations

from aio_pika.abc import AbstractIncomingMessage

from notification_relay.broker.connection import BrokerConnectionManager
from notification_relay.clients.orders import OrderStatusClient
from notification_relay.core.exceptions import MalformedMessageError
from notification_relay.core.logger import get_logger, log_context
from notification_relay.models.context import PaymentConfirmationContext
from notification_relay.models.email import EmailNotification, EmailType
from notification_relay.models.payment import PaymentEvent
from notification_relay.models.results import ConsumeResult
from notification_relay.templates.renderer import TemplateRenderer
from notification_relay.worker.consumer import QueueConsumer
from notification_relay.worker.dispatcher import EmailDispatcher
from notification_relay.worker.recipients import RecipientResolver

logger = get_logger(__name__)


def confirmation_subject(order_id: str) -> str:
    return f"✅ Pago confirmado - Orden #{order_id}"


class PaymentEventOrchestrator(QueueConsumer):
    """Consumer for the payment-event queue.

    Attributes:
        orders: Order service client.
        resolver: Recipient resolver.
        dispatcher: Email dispatcher.
        renderer: Renders the confirmation body.
        paid_status: Order state applied on payment.
    """

    name = "payment"

    def __init__(
        self,
        broker: BrokerConnectionManager,
        orders: OrderStatusClient,
        resolver: RecipientResolver,
        dispatcher: EmailDispatcher,
        renderer: TemplateRenderer,
        queue_name: str = "payment_events",
        paid_status: str = "paid",
    ) -> None:
        super().__init__(broker, queue_name)
        self.orders = orders
        self.resolver = resolver
        self.dispatcher = dispatcher
        self.renderer = renderer
        self.paid_status = paid_status

    def compose_confirmation(self, event: PaymentEvent, recipient: str) -> EmailNotification:
        """Build the PAYMENT_CONFIRMATION notification for an event."""
        context = PaymentConfirmationContext(
            order_id=event.order_id,
            amount=f"{event.amount:.2f}" if event.amount is not None else "0.00",
            payment_date=event.timestamp.strftime("%d/%m/%Y"),
        )
        body = self.renderer.render_html("payment_confirmation", context.model_dump())

        return EmailNotification(
            recipient=recipient,
            subject=confirmation_subject(event.order_id),
            body=body,
            type=EmailType.PAYMENT_CONFIRMATION.value,
            order_id=event.order_id,
        )

    async def process(self, message: AbstractIncomingMessage) -> ConsumeResult:
        try:
            event = PaymentEvent.parse_message(message.body, queue_name=self.queue_name)
        except MalformedMessageError as e:
            logger.error(f"DROPPED malformed payment event: {e}")
            return ConsumeResult.drop(str(e))

        ctx = log_context(
            "payment_event",
            message_id=message.message_id,
            order_id=event.order_id,
            amount=event.amount,
            status=event.status,
        )
        logger.info(f"Received: {ctx}")

        update = await self.orders.update_order_status(event.order_id, self.paid_status)
        if not update.success:
            logger.error(
                f"NOT NOTIFIED: {ctx} | order status update failed: {update.error_detail}"
            )
            if update.is_unauthorized:
                return ConsumeResult.ack("order service rejected the credential")
            return ConsumeResult.ack("order status update failed")

        recipient = await self.resolver.resolve(event)
        if not recipient:
            logger.error(f"NOT NOTIFIED: {ctx} | no recipient could be resolved")
            return ConsumeResult.ack("no recipient")

        notification = self.compose_confirmation(event, recipient)
        result = await self.dispatcher.dispatch(notification)

        if result.success:
            logger.info(f"NOTIFIED: {ctx} | →{recipient} | message_id={result.message_id}")
            return ConsumeResult.ack("confirmation sent")

        logger.error(f"NOTIFICATION FAILED: {ctx} | →{recipient} | error={result.error}")
        return ConsumeResult.ack("confirmation delivery failed")
