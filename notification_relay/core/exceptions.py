"""Custom exceptions for the notification relay.

Defines specific exception types for the different failure classes the
relay distinguishes, so consumers can decide between dropping, retrying
and acknowledging a message.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""


class RelayError(Exception):
    """Base exception for all notification relay errors.

    Example:
        try:
            await broker.publish(queue_name, payload)
        except RelayError as e:
            logger.error(f"Relay error: {e}")
    """

    pass


class RelayConfigError(RelayError):
    """Exception raised for configuration errors.

    Indicates invalid or missing settings in RelayConfig.

    Example:
        raise RelayConfigError("SMTP_USER environment variable not set")
    """

    pass


class BrokerConnectionError(RelayError):
    """Exception raised when the message broker cannot be reached.

    Consumers never see this error directly: their loops are supervised
    and reconnect on their own. One-shot operations (publish, queue
    statistics) surface it to the caller.

    Attributes:
        queue_name (str, optional): Queue involved in the failed operation.
    """

    def __init__(self, message: str, queue_name: str | None = None):
        """Initialize broker error.

        Args:
            message: Error description.
            queue_name: Optional queue the operation targeted.
        """
        super().__init__(message)
        self.queue_name = queue_name


class MalformedMessageError(RelayError):
    """Exception raised when a broker message cannot be parsed.

    A malformed payload can never succeed, so it is discarded rather
    than redelivered.

    Example:
        raise MalformedMessageError("Body is not valid JSON", queue_name="emails_queue")
    """

    def __init__(self, message: str, queue_name: str | None = None):
        """Initialize malformed message error.

        Args:
            message: Error description.
            queue_name: Optional queue the message came from.
        """
        super().__init__(message)
        self.queue_name = queue_name


class SMTPClientError(RelayError):
    """Exception raised for SMTP connection/delivery failures.

    Attributes:
        message (str): Description of the SMTP error.
        is_transient (bool): Whether error is temporary (retry recommended).

    Example:
        raise SMTPClientError(
            "Connection timeout to smtp.gmail.com:587",
            is_transient=True
        )
    """

    def __init__(self, message: str, is_transient: bool = False):
        """Initialize SMTP client error.

        Args:
            message: Error description.
            is_transient: Whether error is temporary and retryable.
        """
        super().__init__(message)
        self.is_transient = is_transient


class RecipientResolutionError(RelayError):
    """Exception raised when a credential cannot yield a recipient.

    Covers an absent credential, a token that is not a decodable JWT,
    and a token without any usable identity claim.
    """

    pass


class TemplateRenderError(RelayError):
    """Exception raised for template rendering failures.

    Attributes:
        template_name (str, optional): Name of the template that failed.

    Example:
        raise TemplateRenderError(
            "Missing variable: order_id",
            template_name="payment_confirmation.html"
        )
    """

    def __init__(self, message: str, template_name: str | None = None):
        """Initialize template render error.

        Args:
            message: Error description.
            template_name: Optional name of the template that failed.
        """
        super().__init__(message)
        self.template_name = template_name
