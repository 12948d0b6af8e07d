"""Models module for the notification relay.

Defines Pydantic v2 data models for queue messages, operation results,
template contexts, consumer statistics and SMTP configuration.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.models.context import PaymentConfirmationContext, WelcomeContext
from notification_relay.models.email import Attachment, EmailNotification, EmailType
from notification_relay.models.payment import PaymentEvent
from notification_relay.models.results import (
    ConsumeResult,
    DeliveryResult,
    MessageOutcome,
    OrderLookupResult,
    OrderStatusUpdateResult,
)
from notification_relay.models.smtp_config import SMTPConfig
from notification_relay.models.stats import ConsumerStats

__all__ = [
    # Enums
    "EmailType",
    "MessageOutcome",
    # Messages
    "Attachment",
    "EmailNotification",
    "PaymentEvent",
    # Results
    "DeliveryResult",
    "OrderStatusUpdateResult",
    "OrderLookupResult",
    "ConsumeResult",
    # Other
    "SMTPConfig",
    "ConsumerStats",
    # Context models
    "WelcomeContext",
    "PaymentConfirmationContext",
]
