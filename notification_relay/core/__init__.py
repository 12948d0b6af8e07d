"""Core module for the notification relay.

Provides foundational utilities, exceptions, and logging configuration.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.core.exceptions import (
    BrokerConnectionError,
    MalformedMessageError,
    RecipientResolutionError,
    RelayConfigError,
    RelayError,
    SMTPClientError,
    TemplateRenderError,
)
from notification_relay.core.logger import (
    get_logger,
    get_logs_directory,
    log_context,
    setup_logging,
)

__all__ = [
    # Exceptions
    "RelayError",
    "RelayConfigError",
    "BrokerConnectionError",
    "MalformedMessageError",
    "SMTPClientError",
    "RecipientResolutionError",
    "TemplateRenderError",
    # Logging
    "get_logger",
    "setup_logging",
    "get_logs_directory",
    "log_context",
]
