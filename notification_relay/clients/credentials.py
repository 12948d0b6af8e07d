"""Bearer credential inspection.

Reads identity claims from the shared JWT bearer credential. The token is
decoded without signature verification: it is our own outbound credential,
not untrusted input, and only its identity claims are needed.

Author: Odiseo
Version: 2.0.0
"""

from typing import Any

from jose import jwt
from jose.exceptions import JWTError

from notification_relay.core.exceptions import RecipientResolutionError
from notification_relay.core.logger import get_logger

logger = get_logger(__name__)

# Claims checked, in order, for a usable recipient
IDENTITY_CLAIMS = ("email", "userEmail", "sub", "username")


def decode_credential_claims(token: str) -> dict[str, Any]:
    """Decode the claims of a JWT without verifying it.

    Args:
        token: Encoded JWT, with or without a "Bearer " prefix.

    Returns:
        Claims dictionary.

    Raises:
        RecipientResolutionError: If the token is absent or not a JWT.
    """
    if not token or not token.strip():
        raise RecipientResolutionError("No bearer credential configured")

    token = token.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()

    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as e:
        raise RecipientResolutionError(f"Bearer credential is not a valid JWT: {e}") from e

    if not isinstance(claims, dict):
        raise RecipientResolutionError("Bearer credential has no claims object")
    return claims


def recipient_from_credential(token: str) -> str | None:
    """Extract a recipient from the credential's identity claims.

    Args:
        token: Encoded JWT.

    Returns:
        First non-empty claim among email, userEmail, sub, username,
        or None when the token is unusable or carries none of them.
    """
    try:
        claims = decode_credential_claims(token)
    except RecipientResolutionError as e:
        logger.warning(f"Cannot derive recipient from credential: {e}")
        return None

    for claim in IDENTITY_CLAIMS:
        value = claims.get(claim)
        if isinstance(value, str) and value.strip():
            logger.debug(f"Recipient taken from credential claim '{claim}'")
            return value.strip()

    logger.warning(
        f"Credential carries none of the identity claims: {', '.join(IDENTITY_CLAIMS)}"
    )
    return None
