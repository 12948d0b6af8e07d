"""Email template context models.

Defines Pydantic models for the template contexts used by the composition
paths, ensuring type-safe context dictionaries for Jinja2 rendering.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from pydantic import BaseModel, Field


class WelcomeContext(BaseModel):
    """Context for the welcome email template.

    Attributes:
        body: Producer supplied body, inserted as markup.
    """

    body: str = Field(default="", description="Producer supplied body")


class PaymentConfirmationContext(BaseModel):
    """Context for the payment confirmation email template.

    Attributes:
        order_id: Order the payment belongs to.
        amount: Formatted amount ("10.50").
        status_label: Human readable payment status.
        payment_date: Formatted payment date.
        support_email: Contact address shown in the footer.
    """

    order_id: str = Field(..., description="Order identifier")
    amount: str = Field(default="0.00", description="Formatted amount")
    status_label: str = Field(default="Pagado", description="Payment status label")
    payment_date: str = Field(..., description="Formatted payment date")
    support_email: str | None = Field(default=None, description="Support contact")
