"""SMTP client for email delivery.

Provides email sending via SMTP with support for Gmail, SendGrid, AWS SES,
and compatible SMTP servers. Features connection reuse for better performance.

Features:
- Connection reuse with automatic refresh
- TLS/SSL encryption
- Multipart emails (HTML + plaintext) with attachments
- Transient error detection

Author: Odiseo
Version: 2.1.0
"""

from __future__ import annotations

import smtplib
import threading
import time
from collections.abc import Sequence
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, make_msgid

from notification_relay.core.exceptions import SMTPClientError
from notification_relay.core.logger import get_logger
from notification_relay.models.email import Attachment
from notification_relay.models.smtp_config import SMTPConfig

logger = get_logger(__name__)


class SMTPClient:
    """SMTP email delivery client with connection reuse.

    Blocking client; callers on the event loop go through MailSender,
    which runs it in a worker thread.

    Attributes:
        config: SMTP configuration.
    """

    # Connection timeout in seconds (refresh after this time)
    CONNECTION_TIMEOUT = 60

    def __init__(self, smtp_config: SMTPConfig) -> None:
        """Initialize SMTP client.

        Args:
            smtp_config: SMTP configuration.
        """
        self.config = smtp_config

        # Connection state
        self._connection: smtplib.SMTP | None = None
        self._last_used: float = 0
        self._lock = threading.Lock()

        logger.info(f"SMTP Client initialized: {self.config.host}:{self.config.port}")

    def _get_connection(self) -> smtplib.SMTP:
        """Get or create SMTP connection with automatic refresh.

        Must be called with the lock held.

        Raises:
            SMTPClientError: If connection cannot be established.
        """
        now = time.time()

        if self._connection and (now - self._last_used) < self.CONNECTION_TIMEOUT:
            try:
                status = self._connection.noop()[0]
                if status == 250:
                    self._last_used = now
                    return self._connection
            except (smtplib.SMTPException, OSError):
                logger.debug("Stale SMTP connection detected, reconnecting...")
        self._close_connection()

        return self._create_connection()

    def _create_connection(self) -> smtplib.SMTP:
        """Create new SMTP connection.

        Raises:
            SMTPClientError: If connection fails.
        """
        try:
            logger.debug(f"Connecting to SMTP: {self.config.host}:{self.config.port}")
            smtp = smtplib.SMTP(
                self.config.host,
                self.config.port,
                timeout=self.config.timeout,
            )

            if self.config.use_tls:
                smtp.starttls()

            if self.config.requires_login:
                smtp.login(self.config.username, self.config.password)

            self._connection = smtp
            self._last_used = time.time()

            logger.debug("SMTP connection established")
            return smtp

        except Exception as e:
            logger.error(f"Failed to establish SMTP connection: {e}")
            raise SMTPClientError(
                f"Failed to connect to SMTP server: {e}",
                is_transient=self._is_transient_error(e),
            ) from e

    def _close_connection(self) -> None:
        """Close existing SMTP connection safely."""
        if self._connection:
            try:
                self._connection.quit()
            except Exception as e:
                logger.debug(f"Error closing SMTP connection (non-critical): {e}")
            finally:
                self._connection = None
                self._last_used = 0

    def build_message(
        self,
        recipient_email: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> MIMEMultipart:
        """Build the MIME message.

        Text and HTML go into a multipart/alternative part; with attachments
        that part is wrapped in multipart/mixed.

        Returns:
            Message with From, To, Subject and Message-ID headers set.
        """
        alternative = MIMEMultipart("alternative")
        if body_text:
            alternative.attach(MIMEText(body_text, "plain", "utf-8"))
        alternative.attach(MIMEText(body_html, "html", "utf-8"))

        if attachments:
            msg = MIMEMultipart("mixed")
            msg.attach(alternative)
            for attachment in attachments:
                maintype, subtype = attachment.mime_type()
                part = MIMEBase(maintype, subtype)
                part.set_payload(attachment.payload())
                encoders.encode_base64(part)
                part.add_header(
                    "Content-Disposition", "attachment", filename=attachment.filename
                )
                msg.attach(part)
        else:
            msg = alternative

        domain = self.config.from_email.rsplit("@", 1)[-1]
        msg["From"] = formataddr((self.config.from_name, self.config.from_email))
        msg["To"] = recipient_email
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid(domain=domain)
        return msg

    def send_email(
        self,
        recipient_email: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        """Send an email via SMTP.

        Args:
            recipient_email: Recipient email address.
            subject: Email subject line.
            body_html: HTML-formatted email body.
            body_text: Plain-text fallback (optional).
            attachments: Attachment descriptors.

        Returns:
            Message-ID of the sent message.

        Raises:
            SMTPClientError: If email sending fails.
        """
        try:
            msg = self.build_message(
                recipient_email, subject, body_html, body_text, attachments
            )
            self._send_message(msg, recipient_email)

            logger.info(f"Email sent to {recipient_email} - Subject: {subject[:50]}")
            return str(msg["Message-ID"])

        except SMTPClientError:
            raise
        except Exception as e:
            logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
            raise SMTPClientError(
                f"Failed to send email to {recipient_email}: {str(e)}",
                is_transient=self._is_transient_error(e),
            ) from e

    def _send_message(self, msg: MIMEMultipart, recipient_email: str) -> None:
        """Send message via SMTP connection with one retry on a stale connection."""
        max_retries = 2

        with self._lock:
            for attempt in range(max_retries):
                try:
                    smtp = self._get_connection()
                    smtp.send_message(
                        msg,
                        from_addr=self.config.from_email,
                        to_addrs=[recipient_email],
                    )
                    return

                except smtplib.SMTPRecipientsRefused as e:
                    # Retrying cannot fix a rejected address
                    raise SMTPClientError(
                        f"Recipient refused: {recipient_email}: {e.recipients}",
                        is_transient=False,
                    ) from e

                except (smtplib.SMTPException, OSError) as e:
                    logger.warning(
                        f"SMTP send failed (attempt {attempt + 1}/{max_retries}): {e}"
                    )
                    self._close_connection()

                    if attempt == max_retries - 1:
                        raise SMTPClientError(
                            f"Failed to send email after {max_retries} attempts: {e}",
                            is_transient=True,
                        ) from e

    def validate_connection(self) -> bool:
        """Test SMTP connection and authentication.

        Returns:
            True if connection successful, False otherwise.
        """
        try:
            logger.info("Testing SMTP connection...")
            with self._lock:
                self._get_connection()
            logger.info("SMTP connection test successful")
            return True

        except Exception as e:
            logger.error(f"SMTP connection test failed: {e}")
            return False

    def close(self) -> None:
        """Close SMTP connection and cleanup resources."""
        with self._lock:
            self._close_connection()
            logger.debug("SMTP client closed")

    @staticmethod
    def _is_transient_error(error: Exception) -> bool:
        """Determine if error is temporary (retryable)."""
        error_str = str(error).lower()
        transient_keywords = [
            "timeout",
            "timed out",
            "connection",
            "temporarily",
            "try again",
            "unavailable",
            "refused",
            "reset",
            "broken pipe",
        ]
        return any(keyword in error_str for keyword in transient_keywords)

    def __enter__(self) -> SMTPClient:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - close connection."""
        self.close()
