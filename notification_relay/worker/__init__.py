"""Worker module for the notification relay.

Contains the queue consumers, the email dispatcher and the payment event
orchestration. The process runner lives in notification_relay.worker.runner.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.worker.consumer import QueueConsumer
from notification_relay.worker.dispatcher import EmailDispatcher, resolve_route
from notification_relay.worker.email_consumer import EmailConsumer
from notification_relay.worker.payments import PaymentEventOrchestrator
from notification_relay.worker.recipients import RecipientResolver

__all__ = [
    "QueueConsumer",
    "EmailConsumer",
    "EmailDispatcher",
    "PaymentEventOrchestrator",
    "RecipientResolver",
    "resolve_route",
]
