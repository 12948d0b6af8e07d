"""Jinja2 template renderer for the notification relay.

Renders HTML and plain-text email templates with dynamic context data.
Used by the welcome composition path and the payment confirmation body.

Version: 2.1.0
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from notification_relay.core.exceptions import TemplateRenderError
from notification_relay.core.logger import get_logger

logger = get_logger(__name__)

_TAG_PATTERN = re.compile(r"<[^>]*>")

DEFAULT_TEMPLATE_DIR = Path(__file__).parent


def strip_tags(markup: str) -> str:
    """Remove markup tags, keeping the text between them."""
    return _TAG_PATTERN.sub("", markup or "")


class TemplateRenderer:
    """Jinja2 template renderer for email templates.

    Templates are addressed by base name: render_html("welcome", ...)
    loads welcome.html, render_text("welcome", ...) loads welcome.txt.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        """Initialize template renderer.

        Args:
            template_dir: Path to templates directory (package templates if None).

        Raises:
            TemplateRenderError: If the directory does not exist.
        """
        self.template_dir = Path(template_dir or DEFAULT_TEMPLATE_DIR)

        if not self.template_dir.is_dir():
            raise TemplateRenderError(f"Template directory not found: {self.template_dir}")

        self.env = self._init_jinja_env()
        logger.info(f"Template renderer initialized: {self.template_dir}")

    def _init_jinja_env(self) -> Environment:
        """Initialize Jinja2 environment with custom settings."""
        env = Environment(
            loader=FileSystemLoader(self.template_dir),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

        env.filters["money"] = self._format_money

        return env

    def _render(self, template_name: str, context: dict[str, Any]) -> str:
        template = self.env.get_template(template_name)
        return template.render(**context)

    def render_html(self, name: str, context: dict[str, Any]) -> str:
        """Render HTML email template.

        Args:
            name: Template base name (e.g. "welcome").
            context: Dictionary with template variables.

        Returns:
            Rendered HTML string.

        Raises:
            TemplateRenderError: If template not found or rendering fails.
        """
        template_name = f"{name}.html"

        try:
            logger.debug(f"Rendering HTML template: {template_name}")
            rendered = self._render(template_name, context)
            logger.debug(f"HTML template rendered: {len(rendered)} bytes")
            return rendered

        except TemplateNotFound:
            logger.error(f"HTML template not found: {template_name}")
            raise TemplateRenderError(
                f"Template not found: {template_name}",
                template_name=template_name,
            ) from None

        except Exception as e:
            logger.error(f"Failed to render HTML template: {e}")
            raise TemplateRenderError(
                f"Failed to render {template_name}: {e}",
                template_name=template_name,
            ) from e

    def render_text(self, name: str, context: dict[str, Any]) -> str:
        """Render plain-text email template.

        Falls back to the HTML template with its tags stripped when no
        .txt variant exists.

        Raises:
            TemplateRenderError: If rendering fails.
        """
        template_name = f"{name}.txt"

        if not self.template_exists(name, "text"):
            logger.debug(f"Text template not found: {template_name}, using HTML fallback")
            return strip_tags(self.render_html(name, context)).strip()

        try:
            logger.debug(f"Rendering text template: {template_name}")
            return self._render(template_name, context).strip()

        except Exception as e:
            logger.error(f"Failed to render text template: {e}")
            raise TemplateRenderError(
                f"Failed to render {template_name}: {e}",
                template_name=template_name,
            ) from e

    @staticmethod
    def _format_money(value: Any) -> str:
        """Jinja2 filter formatting an amount with two decimals."""
        try:
            return f"{float(value):.2f}"
        except (TypeError, ValueError):
            return str(value)

    def template_exists(self, name: str, format_type: str = "html") -> bool:
        """Check if a template file exists.

        Args:
            name: Template base name.
            format_type: "html" or "text".
        """
        ext = "html" if format_type == "html" else "txt"
        return (self.template_dir / f"{name}.{ext}").exists()
