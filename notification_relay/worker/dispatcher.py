"""Email dispatcher.

Routes an EmailNotification to its composition path by type and hands the
composed message to the mail sender.

Version: 2.0.0
"""

from __future__ import annotations

from dataclasses import dataclass, field

from notification_relay.clients.mail import MailSender
from notification_relay.core.logger import get_logger
from notification_relay.models.context import WelcomeContext
from notification_relay.models.email import Attachment, EmailNotification, EmailType
from notification_relay.models.results import DeliveryResult
from notification_relay.templates.renderer import TemplateRenderer, strip_tags

logger = get_logger(__name__)

# Types with a dedicated composition path; everything else is an order confirmation
_ROUTED_TYPES = frozenset(
    {EmailType.ORDER_CONFIRMATION, EmailType.WELCOME, EmailType.PAYMENT_CONFIRMATION}
)


def resolve_route(email_type: EmailType | str | None) -> EmailType:
    """Map a declared email type to the composition path that handles it.

    Args:
        email_type: Resolved EmailType, raw wire value, or None.

    Returns:
        ORDER_CONFIRMATION, WELCOME or PAYMENT_CONFIRMATION. TEST,
        unrecognized and missing types fall back to ORDER_CONFIRMATION.
    """
    if isinstance(email_type, str) and not isinstance(email_type, EmailType):
        email_type = EmailType.from_value(email_type)

    if email_type in _ROUTED_TYPES:
        return email_type
    return EmailType.ORDER_CONFIRMATION


@dataclass
class ComposedEmail:
    """Email ready for the mail sender."""

    recipient: str
    subject: str
    body_html: str
    body_text: str
    attachments: list[Attachment] = field(default_factory=list)


class EmailDispatcher:
    """Composes and sends notifications.

    Attributes:
        mail_sender: Async mail sender.
        renderer: Template renderer for the welcome path.
    """

    def __init__(self, mail_sender: MailSender, renderer: TemplateRenderer) -> None:
        self.mail_sender = mail_sender
        self.renderer = renderer

    def compose(self, notification: EmailNotification) -> ComposedEmail:
        """Build the outgoing email for a notification.

        Raises:
            TemplateRenderError: If the welcome template cannot be rendered.
        """
        route = resolve_route(notification.email_type)

        if route == EmailType.WELCOME:
            context = WelcomeContext(body=notification.body).model_dump()
            return ComposedEmail(
                recipient=notification.recipient,
                subject=notification.subject,
                body_html=self.renderer.render_html("welcome", context),
                body_text=self.renderer.render_text("welcome", context),
            )

        if route == EmailType.PAYMENT_CONFIRMATION:
            return ComposedEmail(
                recipient=notification.recipient,
                subject=notification.subject,
                body_html=notification.body,
                body_text=strip_tags(notification.body),
            )

        return ComposedEmail(
            recipient=notification.recipient,
            subject=notification.subject,
            body_html=notification.body,
            body_text=strip_tags(notification.body),
            attachments=list(notification.attachments),
        )

    async def dispatch(self, notification: EmailNotification) -> DeliveryResult:
        """Compose and send a notification.

        Returns:
            The mail sender's DeliveryResult, unchanged.
        """
        route = resolve_route(notification.email_type)
        logger.debug(
            f"Dispatching {notification.type or 'untyped'} email to "
            f"{notification.recipient} via {route.value} path"
        )

        email = self.compose(notification)
        return await self.mail_sender.send(
            recipient=email.recipient,
            subject=email.subject,
            body_html=email.body_html,
            body_text=email.body_text,
            attachments=email.attachments,
        )
