"""API request and response schemas.

Pydantic models for API validation and serialization. Field names on the
wire are camelCase, matching the queue message formats.

Version: 2.0.0
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class HealthResponse(BaseModel):
    """Response model for GET /health endpoint."""

    status: str = Field(description="OK or degraded")
    service: str = Field(description="Service name")
    version: str = Field(description="Service version")
    queues: list[str] = Field(description="Queues consumed by the relay")
    broker: dict[str, Any] = Field(description="Broker connection health")
    consumers: dict[str, dict[str, Any]] = Field(
        default_factory=dict, description="Per-consumer statistics"
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QueueCounts(BaseModel):
    """Message and consumer counts for one queue."""

    model_config = ConfigDict(populate_by_name=True)

    message_count: int = Field(alias="messageCount", description="Ready messages")
    consumer_count: int = Field(alias="consumerCount", description="Attached consumers")


class QueueStatusResponse(BaseModel):
    """Response model for GET /queue-status endpoint."""

    queues: dict[str, QueueCounts] = Field(description="Counts per queue")
    status: str = Field(default="active", description="Consumer status")


class TestEmailRequest(BaseModel):
    """Request model for POST /test-email endpoint. All fields optional."""

    __test__ = False

    to: str = Field(default="test@example.com", min_length=1, description="Recipient")
    subject: str = Field(
        default="Email de prueba - Notification Service", description="Subject line"
    )
    body: str = Field(
        default="Este es un email de prueba del servicio de notificaciones",
        description="HTML body",
    )
    type: str = Field(default="TEST", description="Email type")


class TestEmailResponse(BaseModel):
    """Response model for POST /test-email endpoint."""

    __test__ = False

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(description="Status message")
    message_id: str = Field(alias="messageId", description="Provider message id")


class SimulatePaymentRequest(BaseModel):
    """Request model for POST /simulate-payment endpoint."""

    model_config = ConfigDict(populate_by_name=True)

    order_id: str | None = Field(default=None, alias="orderId", description="Order id")
    user_email: str | None = Field(
        default=None, alias="userEmail", description="Buyer email"
    )
    amount: Decimal | None = Field(default=None, description="Paid amount")
    status: str | None = Field(default=None, description="Payment status")

    @field_validator("order_id", mode="before")
    @classmethod
    def coerce_order_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        if isinstance(v, str) and not v.strip():
            return None
        return v


class SimulatePaymentResponse(BaseModel):
    """Response model for POST /simulate-payment endpoint."""

    message: str = Field(description="Status message")
    event: dict[str, Any] = Field(description="Published payment event")


class ErrorResponse(BaseModel):
    """Standard error response model."""

    error: str = Field(description="Error summary")
    details: str | None = Field(default=None, description="Error detail")
