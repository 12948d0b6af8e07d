"""Clients module for the notification relay.

Contains integrations with external services: the SMTP server and the
order service, plus inspection of the shared bearer credential.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.clients.credentials import (
    decode_credential_claims,
    recipient_from_credential,
)
from notification_relay.clients.mail import MailSender
from notification_relay.clients.orders import OrderStatusClient
from notification_relay.clients.smtp import SMTPClient

__all__ = [
    "SMTPClient",
    "MailSender",
    "OrderStatusClient",
    "decode_credential_claims",
    "recipient_from_credential",
]
