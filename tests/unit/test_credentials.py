"""Unit tests for bearer credential inspection.

Author: Odiseo
Version: 2.0.0
"""

from __future__ import annotations

import pytest

from notification_relay.clients.credentials import (
    decode_credential_claims,
    recipient_from_credential,
)
from notification_relay.core.exceptions import RecipientResolutionError


class TestDecodeCredentialClaims:
    """Tests for unverified claim decoding."""

    def test_decodes_claims_without_key(self, make_token):
        claims = decode_credential_claims(make_token(email="a@b.com", role="admin"))

        assert claims["email"] == "a@b.com"
        assert claims["role"] == "admin"

    def test_bearer_prefix_accepted(self, make_token):
        assert decode_credential_claims(f"Bearer {make_token(sub='x')}")["sub"] == "x"

    @pytest.mark.parametrize("token", ["", "   ", "not-a-jwt", "a.b.c"])
    def test_unusable_tokens_raise(self, token):
        with pytest.raises(RecipientResolutionError):
            decode_credential_claims(token)


class TestRecipientFromCredential:
    """Tests for identity claim precedence."""

    @pytest.mark.parametrize("claims,expected", [
        ({"email": "e@b.com", "userEmail": "u@b.com", "sub": "s", "username": "n"}, "e@b.com"),
        ({"userEmail": "u@b.com", "sub": "s"}, "u@b.com"),
        ({"sub": "s@b.com", "username": "n"}, "s@b.com"),
        ({"username": "n@b.com"}, "n@b.com"),
        ({"email": "  ", "sub": "s@b.com"}, "s@b.com"),
        ({"role": "service"}, None),
    ])
    def test_claim_precedence(self, make_token, claims, expected):
        assert recipient_from_credential(make_token(**claims)) == expected

    def test_malformed_token_returns_none(self):
        assert recipient_from_credential("garbage") is None
