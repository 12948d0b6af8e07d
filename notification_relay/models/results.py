"""Operation result models.

Results returned by the mail sender, the order service client and the
queue consumers. Failures that are part of normal operation are reported
through these values instead of exceptions.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DeliveryResult(BaseModel):
    """Outcome of a single email delivery.

    Attributes:
        success: Whether the provider accepted the message.
        message_id: Provider message id (present iff success).
        error: Error detail (present iff failure).
    """

    success: bool = Field(..., description="Whether delivery succeeded")
    message_id: str | None = Field(default=None, description="Provider message id")
    error: str | None = Field(default=None, description="Failure detail")

    @model_validator(mode="after")
    def validate_consistency(self) -> DeliveryResult:
        """Ensure message_id and error match the success flag."""
        if self.success and (not self.message_id or self.error):
            raise ValueError("Successful delivery requires a message_id and no error")
        if not self.success and (not self.error or self.message_id):
            raise ValueError("Failed delivery requires an error and no message_id")
        return self

    @classmethod
    def ok(cls, message_id: str) -> DeliveryResult:
        return cls(success=True, message_id=message_id)

    @classmethod
    def failed(cls, error: str) -> DeliveryResult:
        return cls(success=False, error=error or "Unknown delivery error")


def _describe(detail: Any) -> str:
    if detail is None:
        return ""
    if isinstance(detail, str):
        return detail
    try:
        return json.dumps(detail, default=str)
    except (TypeError, ValueError):
        return str(detail)


class OrderStatusUpdateResult(BaseModel):
    """Outcome of an order state transition call.

    Attributes:
        success: True for any 2xx response.
        data: Response payload on success.
        error: Response body or transport error on failure.
        status_code: HTTP status when a response was received.
    """

    success: bool
    data: Any = None
    error: Any = None
    status_code: int | None = None

    @property
    def is_unauthorized(self) -> bool:
        return self.status_code == 401

    @property
    def error_detail(self) -> str:
        """Error rendered as a log-friendly string."""
        return _describe(self.error)


class OrderLookupResult(BaseModel):
    """Outcome of an order metadata lookup."""

    success: bool
    order: dict[str, Any] | None = None
    error: Any = None
    status_code: int | None = None

    @property
    def error_detail(self) -> str:
        return _describe(self.error)


class MessageOutcome(str, Enum):
    """How a consumed message is settled with the broker.

    Attributes:
        ACK: Processed (or deliberately consumed); remove from queue.
        RETRY: Republish a copy with an incremented attempt header, ack original.
        REQUEUE: Negative-acknowledge with requeue (unbounded redelivery).
        DROP: Negative-acknowledge without requeue; the message is discarded.
        DEAD_LETTER: Publish a copy to the dead-letter queue, ack original.
    """

    ACK = "ack"
    RETRY = "retry"
    REQUEUE = "requeue"
    DROP = "drop"
    DEAD_LETTER = "dead_letter"


class ConsumeResult(BaseModel):
    """Settlement decision produced by a consumer for one message.

    Attributes:
        outcome: Settlement to apply.
        reason: Short description for logs.
        headers: Headers for the republished copy (RETRY / DEAD_LETTER).
    """

    model_config = ConfigDict(frozen=True)

    outcome: MessageOutcome
    reason: str = ""
    headers: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ack(cls, reason: str = "processed") -> ConsumeResult:
        return cls(outcome=MessageOutcome.ACK, reason=reason)

    @classmethod
    def retry(cls, reason: str, headers: dict[str, Any]) -> ConsumeResult:
        return cls(outcome=MessageOutcome.RETRY, reason=reason, headers=headers)

    @classmethod
    def requeue(cls, reason: str) -> ConsumeResult:
        return cls(outcome=MessageOutcome.REQUEUE, reason=reason)

    @classmethod
    def drop(cls, reason: str) -> ConsumeResult:
        return cls(outcome=MessageOutcome.DROP, reason=reason)

    @classmethod
    def dead_letter(cls, reason: str, headers: dict[str, Any]) -> ConsumeResult:
        return cls(outcome=MessageOutcome.DEAD_LETTER, reason=reason, headers=headers)
