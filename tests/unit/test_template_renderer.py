"""Unit tests for template renderer.

Tests Jinja2 template loading, rendering, and plain-text fallback.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

from pathlib import Path

import pytest

from notification_relay.core.exceptions import TemplateRenderError
from notification_relay.templates.renderer import TemplateRenderer, strip_tags


@pytest.fixture
def temp_template_dir(tmp_path: Path) -> Path:
    """Create a temporary directory with test templates."""
    (tmp_path / "greeting.html").write_text("<h1>Hello {{ name }}!</h1><p>{{ body | safe }}</p>")
    (tmp_path / "greeting.txt").write_text("Hello {{ name }}!")
    (tmp_path / "html_only.html").write_text("<p>Only <b>{{ name }}</b></p>")
    (tmp_path / "broken.html").write_text("{{ name | no_such_filter }}")
    return tmp_path


class TestTemplateRendererInit:
    """Tests for TemplateRenderer initialization."""

    def test_init_with_custom_dir(self, temp_template_dir):
        renderer = TemplateRenderer(template_dir=temp_template_dir)

        assert renderer.template_dir == temp_template_dir
        assert "money" in renderer.env.filters

    def test_init_missing_dir_raises(self, tmp_path):
        with pytest.raises(TemplateRenderError):
            TemplateRenderer(template_dir=tmp_path / "missing")

    def test_default_dir_ships_templates(self):
        renderer = TemplateRenderer()

        assert renderer.template_exists("welcome")
        assert renderer.template_exists("payment_confirmation")


class TestRenderHTML:
    """Tests for HTML rendering."""

    def test_render_html(self, temp_template_dir):
        renderer = TemplateRenderer(template_dir=temp_template_dir)

        html = renderer.render_html("greeting", {"name": "<Ana>", "body": "<em>hi</em>"})

        assert "Hello &lt;Ana&gt;!" in html
        assert "<em>hi</em>" in html

    def test_missing_template_raises(self, temp_template_dir):
        renderer = TemplateRenderer(template_dir=temp_template_dir)

        with pytest.raises(TemplateRenderError) as exc_info:
            renderer.render_html("nope", {})

        assert exc_info.value.template_name == "nope.html"

    def test_broken_template_raises(self, temp_template_dir):
        renderer = TemplateRenderer(template_dir=temp_template_dir)

        with pytest.raises(TemplateRenderError):
            renderer.render_html("broken", {"name": "x"})


class TestRenderText:
    """Tests for plain-text rendering."""

    def test_render_text_template(self, temp_template_dir):
        renderer = TemplateRenderer(template_dir=temp_template_dir)

        assert renderer.render_text("greeting", {"name": "Ana"}) == "Hello Ana!"

    def test_text_falls_back_to_stripped_html(self, temp_template_dir):
        renderer = TemplateRenderer(template_dir=temp_template_dir)

        assert renderer.render_text("html_only", {"name": "Ana"}) == "Only Ana"


class TestShippedTemplates:
    """Tests for the packaged email templates."""

    def test_welcome_wraps_body(self):
        html = TemplateRenderer().render_html("welcome", {"body": "<b>Hola</b>"})

        assert "Bienvenido" in html
        assert "<b>Hola</b>" in html

    def test_payment_confirmation_includes_order(self):
        html = TemplateRenderer().render_html(
            "payment_confirmation",
            {"order_id": "42", "amount": "10.5", "status_label": "Pagado",
             "payment_date": "18/10/2025", "support_email": None},
        )

        assert "Orden #42" in html
        assert "$10.50" in html
        assert "18/10/2025" in html


def test_strip_tags():
    assert strip_tags("<p>Hola <b>mundo</b></p>") == "Hola mundo"
    assert strip_tags("") == ""
