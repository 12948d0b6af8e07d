"""Configuration module for the notification relay.

Loads and validates relay settings from environment variables or .env file.
Settings are instantiated once at startup and handed to components through
the service context.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.config.settings import RECIPIENT_SOURCES, RelayConfig

__all__ = ["RECIPIENT_SOURCES", "RelayConfig"]
