"""Email notification models.

Defines the email type enumeration, attachment descriptors and the
EmailNotification message consumed from the email queue.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from __future__ import annotations

import base64
import binascii
import json
import mimetypes
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from notification_relay.core.exceptions import MalformedMessageError


class EmailType(str, Enum):
    """Email notification type enumeration.

    Attributes:
        ORDER_CONFIRMATION: Order confirmation (also the default path).
        WELCOME: Welcome email for new users.
        PAYMENT_CONFIRMATION: Confirmation of a successful payment.
        TEST: Manual test email sent through the HTTP surface.
    """

    ORDER_CONFIRMATION = "ORDER_CONFIRMATION"
    WELCOME = "WELCOME"
    PAYMENT_CONFIRMATION = "PAYMENT_CONFIRMATION"
    TEST = "TEST"

    @classmethod
    def from_value(cls, value: str | None) -> EmailType | None:
        """Resolve a wire value to an EmailType.

        Args:
            value: Raw type string from a message (case-insensitive).

        Returns:
            Matching EmailType, or None when absent or unrecognized.
        """
        if not value or not value.strip():
            return None

        normalized = value.strip().upper()
        if normalized in _TYPE_ALIASES:
            return _TYPE_ALIASES[normalized]

        try:
            return cls(normalized)
        except ValueError:
            return None


# Older producers still send WELCOME_EMAIL
_TYPE_ALIASES = {"WELCOME_EMAIL": EmailType.WELCOME}


def decode_json_object(body: bytes | str, queue_name: str | None = None) -> dict[str, Any]:
    """Decode a broker message body into a JSON object.

    Args:
        body: Raw message body.
        queue_name: Queue the body came from (for error reporting).

    Returns:
        Decoded dictionary.

    Raises:
        MalformedMessageError: If the body is not UTF-8 JSON or not an object.
    """
    try:
        text = body.decode("utf-8") if isinstance(body, bytes) else body
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedMessageError(f"Body is not valid JSON: {e}", queue_name=queue_name) from e

    if not isinstance(data, dict):
        raise MalformedMessageError(
            f"Expected a JSON object, got {type(data).__name__}",
            queue_name=queue_name,
        )
    return data


class Attachment(BaseModel):
    """Email attachment descriptor.

    Attributes:
        filename: File name shown to the recipient.
        content: File content, plain text or base64 encoded.
        content_type: MIME type (guessed from filename when absent).
        encoding: "base64" when content is base64 encoded.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    filename: str = Field(..., min_length=1, description="Attachment file name")
    content: str = Field(default="", description="Attachment content")
    content_type: str | None = Field(
        default=None, alias="contentType", description="MIME type"
    )
    encoding: str | None = Field(default=None, description="Content encoding")

    @model_validator(mode="after")
    def validate_encoded_content(self) -> Attachment:
        """Reject base64 content that cannot be decoded."""
        if self.is_base64:
            try:
                base64.b64decode(self.content, validate=True)
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"Attachment {self.filename} is not valid base64") from e
        return self

    @property
    def is_base64(self) -> bool:
        return (self.encoding or "").strip().lower() == "base64"

    def payload(self) -> bytes:
        """Return the attachment bytes."""
        if self.is_base64:
            return base64.b64decode(self.content)
        return self.content.encode("utf-8")

    def mime_type(self) -> tuple[str, str]:
        """Return (maintype, subtype) for this attachment."""
        guessed = self.content_type or mimetypes.guess_type(self.filename)[0]
        if not guessed or "/" not in guessed:
            guessed = "application/octet-stream"
        maintype, subtype = guessed.split("/", 1)
        return maintype, subtype


class EmailNotification(BaseModel):
    """Email message consumed from the email-delivery queue.

    Wire format (JSON):
        {"to": "...", "subject": "...", "body": "<p>...</p>",
         "type": "ORDER_CONFIRMATION", "attachments": [...]}

    Attributes:
        recipient: Recipient address (wire key "to").
        subject: Subject line.
        body: Body, may contain HTML markup.
        type: Raw declared type; see email_type for the resolved value.
        attachments: Ordered attachment descriptors.
        order_id: Related order id, informational only.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    recipient: str = Field(..., alias="to", description="Recipient email address")
    subject: str = Field(default="", description="Email subject line")
    body: str = Field(default="", description="Email body (may contain markup)")
    type: str | None = Field(default=None, description="Declared email type")
    attachments: list[Attachment] = Field(
        default_factory=list, description="Attachment descriptors"
    )
    order_id: str | None = Field(
        default=None, alias="orderId", description="Related order id"
    )

    @field_validator("recipient")
    @classmethod
    def validate_recipient(cls, v: str) -> str:
        """Validate recipient is not empty.

        Raises:
            ValueError: If recipient is empty or whitespace.
        """
        if not v.strip():
            raise ValueError("Recipient cannot be empty")
        return v.strip()

    @field_validator("subject", "body", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, v: Any) -> Any:
        """Keep non-string types as unrecognized values instead of failing."""
        if v is None or isinstance(v, str):
            return v
        return str(v)

    @field_validator("attachments", mode="before")
    @classmethod
    def none_as_no_attachments(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("order_id", mode="before")
    @classmethod
    def coerce_order_id(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def email_type(self) -> EmailType | None:
        """Resolved email type, None when absent or unrecognized."""
        return EmailType.from_value(self.type)

    @classmethod
    def parse_message(
        cls, body: bytes | str, queue_name: str | None = None
    ) -> EmailNotification:
        """Parse a broker message body.

        Args:
            body: Raw message body.
            queue_name: Source queue (for error reporting).

        Returns:
            Parsed notification.

        Raises:
            MalformedMessageError: If the body can never be processed.
        """
        data = decode_json_object(body, queue_name=queue_name)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedMessageError(
                f"Invalid email notification: {e.error_count()} validation error(s): "
                f"{e.errors()[0]['msg']}",
                queue_name=queue_name,
            ) from e
