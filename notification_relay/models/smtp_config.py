"""SMTP configuration model.

Defines Pydantic model for SMTP server configuration and validation.

Author: Odiseo
Created: 2025-10-18
Version: 2.0.0
"""

from pydantic import BaseModel, EmailStr, Field


class SMTPConfig(BaseModel):
    """SMTP server configuration model.

    Attributes:
        host: SMTP server hostname.
        port: SMTP server port (1-65535).
        username: SMTP authentication username (empty disables login).
        password: SMTP authentication password.
        from_email: Sender email address.
        from_name: Sender display name.
        use_tls: Whether to use STARTTLS.
        timeout: Socket timeout in seconds.
    """

    host: str = Field(..., min_length=1, description="SMTP server hostname")
    port: int = Field(..., ge=1, le=65535, description="SMTP server port")
    username: str = Field(default="", description="SMTP authentication username")
    password: str = Field(default="", description="SMTP authentication password")
    from_email: EmailStr = Field(..., description="Sender email address")
    from_name: str = Field(default="Notificaciones", description="Sender display name")
    use_tls: bool = Field(default=True, description="Use TLS encryption")
    timeout: int = Field(
        default=30, ge=5, le=300, description="Connection timeout (seconds)"
    )

    @property
    def requires_login(self) -> bool:
        return bool(self.username and self.password)
