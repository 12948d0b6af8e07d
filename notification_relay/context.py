"""Service context.

Bundles the configuration and the long-lived collaborators built from it,
so consumers and HTTP handlers receive their dependencies explicitly.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

from dataclasses import dataclass

from notification_relay.broker.connection import BrokerConnectionManager
from notification_relay.clients.mail import MailSender
from notification_relay.clients.orders import OrderStatusClient
from notification_relay.clients.smtp import SMTPClient
from notification_relay.config import RelayConfig
from notification_relay.core.logger import get_logger
from notification_relay.models.smtp_config import SMTPConfig
from notification_relay.templates.renderer import TemplateRenderer
from notification_relay.worker.dispatcher import EmailDispatcher
from notification_relay.worker.recipients import RecipientResolver

logger = get_logger(__name__)


@dataclass
class ServiceContext:
    """Process-wide dependencies, created once at startup."""

    config: RelayConfig
    broker: BrokerConnectionManager
    smtp_client: SMTPClient
    mail_sender: MailSender
    orders: OrderStatusClient
    renderer: TemplateRenderer
    dispatcher: EmailDispatcher
    resolver: RecipientResolver

    @classmethod
    def from_config(cls, config: RelayConfig) -> ServiceContext:
        """Build all collaborators from configuration.

        Raises:
            ValidationError: If the SMTP settings are not a valid SMTPConfig.
            TemplateRenderError: If the template directory is missing.
        """
        smtp_client = SMTPClient(SMTPConfig(**config.get_smtp_config()))
        mail_sender = MailSender(smtp_client, send_timeout=config.MAIL_SEND_TIMEOUT_SECONDS)
        orders = OrderStatusClient(config)
        renderer = TemplateRenderer(config.TEMPLATE_DIR)

        context = cls(
            config=config,
            broker=BrokerConnectionManager(config),
            smtp_client=smtp_client,
            mail_sender=mail_sender,
            orders=orders,
            renderer=renderer,
            dispatcher=EmailDispatcher(mail_sender, renderer),
            resolver=RecipientResolver(
                config.recipient_sources, orders=orders, credential=config.JWT_TOKEN
            ),
        )
        logger.debug("Service context initialized")
        return context

    async def close(self) -> None:
        """Release network resources."""
        await self.broker.close()
        await self.orders.close()
        self.mail_sender.close()
        logger.debug("Service context closed")
