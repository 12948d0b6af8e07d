"""Async mail sender.

Wraps the blocking SMTPClient for use from the event loop: each send runs
in a worker thread under a deadline and is reported as a DeliveryResult.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from notification_relay.clients.smtp import SMTPClient
from notification_relay.core.exceptions import SMTPClientError
from notification_relay.core.logger import get_logger
from notification_relay.models.email import Attachment
from notification_relay.models.results import DeliveryResult

logger = get_logger(__name__)


class MailSender:
    """Delivers rendered emails and reports the outcome.

    Attributes:
        smtp_client: Blocking SMTP transport.
        send_timeout: Deadline in seconds for one send, connection included.
    """

    def __init__(self, smtp_client: SMTPClient, send_timeout: float = 60.0) -> None:
        self.smtp_client = smtp_client
        self.send_timeout = send_timeout

    async def send(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> DeliveryResult:
        """Send one email.

        Never raises for delivery failures; they come back as
        DeliveryResult.failed with the error detail.

        Args:
            recipient: Recipient address.
            subject: Subject line.
            body_html: HTML body.
            body_text: Plain-text alternative.
            attachments: Attachment descriptors.

        Returns:
            DeliveryResult with the provider message id or the error.
        """
        try:
            message_id = await asyncio.wait_for(
                asyncio.to_thread(
                    self.smtp_client.send_email,
                    recipient,
                    subject,
                    body_html,
                    body_text,
                    list(attachments),
                ),
                timeout=self.send_timeout,
            )
        except SMTPClientError as e:
            logger.error(f"Delivery to {recipient} failed (transient={e.is_transient}): {e}")
            return DeliveryResult.failed(str(e))
        except asyncio.TimeoutError:
            # The worker thread may still finish; the outcome is unknown
            logger.error(f"Delivery to {recipient} exceeded {self.send_timeout}s deadline")
            return DeliveryResult.failed(
                f"Mail send timed out after {self.send_timeout}s"
            )

        logger.debug(f"Delivery to {recipient} accepted: {message_id}")
        return DeliveryResult.ok(message_id)

    async def verify(self) -> bool:
        """Check that the SMTP server accepts our connection and credentials."""
        return await asyncio.to_thread(self.smtp_client.validate_connection)

    def close(self) -> None:
        self.smtp_client.close()
