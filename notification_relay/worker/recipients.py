"""Payment confirmation recipient resolution.

Tries the configured sources in order and returns the first usable
address:

- event: the userEmail carried by the payment event
- order: the buyer address in the order service's order metadata
- token: identity claims of the shared bearer credential

Version: 2.0.0
"""

from __future__ import annotations

from collections.abc import Sequence

from notification_relay.clients.credentials import recipient_from_credential
from notification_relay.clients.orders import OrderStatusClient
from notification_relay.config import RECIPIENT_SOURCES
from notification_relay.core.logger import get_logger
from notification_relay.models.payment import PaymentEvent

logger = get_logger(__name__)


class RecipientResolver:
    """Resolves who receives a payment confirmation."""

    def __init__(
        self,
        sources: Sequence[str],
        orders: OrderStatusClient | None = None,
        credential: str = "",
    ) -> None:
        """Initialize the resolver.

        Args:
            sources: Source names in lookup order.
            orders: Order service client, required for the "order" source.
            credential: Bearer token inspected by the "token" source.

        Raises:
            ValueError: If a source is unknown.
        """
        unknown = [s for s in sources if s not in RECIPIENT_SOURCES]
        if unknown:
            raise ValueError(f"Unknown recipient sources: {', '.join(unknown)}")

        self.sources = list(sources)
        self.orders = orders
        self._credential = credential

    async def _from_source(self, source: str, event: PaymentEvent) -> str | None:
        if source == "event":
            return event.user_email
        if source == "order":
            if self.orders is None:
                logger.warning("Order recipient source configured without an order client")
                return None
            return await self.orders.get_order_email(event.order_id)
        return recipient_from_credential(self._credential)

    async def resolve(self, event: PaymentEvent) -> str | None:
        """Return the recipient for a payment event, or None."""
        for source in self.sources:
            recipient = await self._from_source(source, event)
            if recipient:
                logger.debug(f"Recipient for order {event.order_id} from '{source}': {recipient}")
                return recipient
            logger.debug(f"No recipient for order {event.order_id} from '{source}'")

        logger.error(
            f"No recipient found for order {event.order_id} "
            f"(sources tried: {', '.join(self.sources)})"
        )
        return None
