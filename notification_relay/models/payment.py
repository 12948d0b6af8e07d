"""Payment event model.

Defines the PaymentEvent message consumed from the payment-event queue.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)

from notification_relay.core.exceptions import MalformedMessageError
from notification_relay.models.email import decode_json_object

_DECIMAL = TypeAdapter(Decimal)
_DATETIME = TypeAdapter(datetime)


class PaymentEvent(BaseModel):
    """Payment event published by the payment flow.

    Wire format (JSON):
        {"orderId": "42", "userEmail": "a@b.com", "amount": 10.5,
         "status": "completed", "timestamp": "2025-10-18T12:00:00Z"}

    Attributes:
        order_id: Order identifier (wire key "orderId"), required.
        user_email: Buyer email (wire key "userEmail"), optional.
        amount: Paid amount, optional.
        status: Payment status reported by the producer.
        timestamp: When the payment happened.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    order_id: str = Field(..., alias="orderId", description="Order identifier")
    user_email: str | None = Field(
        default=None, alias="userEmail", description="Buyer email address"
    )
    amount: Decimal | None = Field(default=None, description="Paid amount")
    status: str = Field(default="completed", description="Payment status")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Payment timestamp (ISO 8601)",
    )

    @field_validator("order_id", mode="before")
    @classmethod
    def validate_order_id(cls, v: Any) -> Any:
        """Coerce numeric ids to strings and reject blank ids.

        Raises:
            ValueError: If the id is empty or whitespace.
        """
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("orderId cannot be empty")
        return v

    # Only orderId can make an event unprocessable; the other fields are
    # informational and fall back to defaults when unusable.

    @field_validator("user_email", mode="before")
    @classmethod
    def blank_email_as_none(cls, v: Any) -> Any:
        if not isinstance(v, str) or not v.strip():
            return None
        return v.strip()

    @field_validator("amount", mode="before")
    @classmethod
    def lenient_amount(cls, v: Any) -> Decimal | None:
        """Parse the amount, None when absent, non-numeric or not finite."""
        if v is None or isinstance(v, bool):
            return None
        try:
            amount = _DECIMAL.validate_python(v)
        except ValidationError:
            return None
        return amount if amount.is_finite() else None

    @field_validator("status", mode="before")
    @classmethod
    def none_status_as_default(cls, v: Any) -> Any:
        if v is None:
            return "completed"
        return v if isinstance(v, str) else str(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def lenient_timestamp(cls, v: Any) -> datetime:
        """Parse an ISO instant, now (UTC) when absent or unparseable."""
        if v is not None:
            try:
                return _DATETIME.validate_python(v)
            except ValidationError:
                pass
        return datetime.now(timezone.utc)

    @field_serializer("amount")
    def serialize_amount(self, amount: Decimal | None) -> float | None:
        return float(amount) if amount is not None else None

    @classmethod
    def parse_message(
        cls, body: bytes | str, queue_name: str | None = None
    ) -> PaymentEvent:
        """Parse a broker message body.

        Raises:
            MalformedMessageError: If the body is not JSON or lacks orderId.
        """
        data = decode_json_object(body, queue_name=queue_name)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedMessageError(
                f"Invalid payment event: {e.errors()[0]['msg']}",
                queue_name=queue_name,
            ) from e

    def to_message(self) -> bytes:
        """Serialize to the JSON wire format."""
        return self.model_dump_json(by_alias=True).encode("utf-8")
