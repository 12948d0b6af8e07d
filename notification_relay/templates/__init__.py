"""Templates module for the notification relay.

Contains the Jinja2 renderer and the HTML/text email templates.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from notification_relay.templates.renderer import TemplateRenderer, strip_tags

__all__ = ["TemplateRenderer", "strip_tags"]
