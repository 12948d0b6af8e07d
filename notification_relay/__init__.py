"""Notification Relay - RabbitMQ driven email notifications.

Consumes email notifications and payment events from RabbitMQ and turns
them into outbound emails:
- Email queue: typed notifications delivered via SMTP
- Payment queue: order marked paid in the order service, then a payment
  confirmation is sent to the buyer
- Bounded delivery retries with a dead-letter queue
- Supervised broker reconnects with exponential backoff

Architecture:
    - RabbitMQ queues (aio-pika robust connection, prefetch 1)
    - Consumers returning explicit settlement decisions
    - Order service client (httpx, bearer token)
    - SMTP client wrapper run off the event loop
    - Jinja2 template renderer
    - FastAPI surface for health, queue status and manual testing

Modules:
    - core: Exceptions, logger
    - config: Pydantic v2 settings
    - models: Queue messages, results, statistics, template contexts
    - broker: RabbitMQ connection manager
    - clients: External integrations (SMTP, order service, credential)
    - templates: Email template rendering (Jinja2)
    - worker: Consumers, dispatcher, payment orchestration, runner
    - api: HTTP endpoints

Usage:
    # Run consumers only
    python -m notification_relay.worker

    # Run consumers inside the HTTP service
    python -m notification_relay.api.main

    # Publish a payment event
    from notification_relay import BrokerConnectionManager, PaymentEvent, RelayConfig

    config = RelayConfig()
    broker = BrokerConnectionManager(config)
    event = PaymentEvent(order_id="42", user_email="a@b.com")
    await broker.publish(config.PAYMENT_QUEUE, event.to_message())

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

__version__ = "2.0.0"

# Broker
from notification_relay.broker import BrokerConnectionManager, BrokerHealth

# Clients
from notification_relay.clients import MailSender, OrderStatusClient, SMTPClient

# Configuration
from notification_relay.config import RelayConfig

# Service context
from notification_relay.context import ServiceContext

# Core utilities
from notification_relay.core import (
    BrokerConnectionError,
    MalformedMessageError,
    RecipientResolutionError,
    RelayConfigError,
    RelayError,
    SMTPClientError,
    TemplateRenderError,
    get_logger,
)

# Models
from notification_relay.models import (
    ConsumeResult,
    DeliveryResult,
    EmailNotification,
    EmailType,
    MessageOutcome,
    PaymentEvent,
    SMTPConfig,
)

# Templates
from notification_relay.templates import TemplateRenderer

# Worker
from notification_relay.worker import (
    EmailConsumer,
    EmailDispatcher,
    PaymentEventOrchestrator,
    RecipientResolver,
)
from notification_relay.worker.runner import RelayWorker

__all__ = [
    # Version
    "__version__",
    # Core exceptions
    "RelayError",
    "RelayConfigError",
    "BrokerConnectionError",
    "MalformedMessageError",
    "SMTPClientError",
    "RecipientResolutionError",
    "TemplateRenderError",
    "get_logger",
    # Configuration
    "RelayConfig",
    "ServiceContext",
    # Models
    "EmailType",
    "EmailNotification",
    "PaymentEvent",
    "DeliveryResult",
    "ConsumeResult",
    "MessageOutcome",
    "SMTPConfig",
    # Broker
    "BrokerConnectionManager",
    "BrokerHealth",
    # Clients
    "SMTPClient",
    "MailSender",
    "OrderStatusClient",
    # Templates
    "TemplateRenderer",
    # Worker
    "EmailDispatcher",
    "EmailConsumer",
    "PaymentEventOrchestrator",
    "RecipientResolver",
    "RelayWorker",
]
