"""Broker module for the notification relay.

Provides the RabbitMQ connection manager shared by the consumers and the
HTTP surface.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.broker.connection import BrokerConnectionManager, BrokerHealth

__all__ = ["BrokerConnectionManager", "BrokerHealth"]
