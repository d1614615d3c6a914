"""Webhook signature verification.

Shopify signs each webhook with HMAC-SHA256 over the raw request body,
base64 encoded, in the ``X-Shopify-Hmac-Sha256`` header. Verification must
run on the bytes exactly as received; a re-serialized body will not match.
"""

import base64
import hashlib
import hmac
from enum import Enum

from restock_service.errors import AuthenticationFailure

SIGNATURE_HEADER = "X-Shopify-Hmac-Sha256"


class AuthResult(str, Enum):
    """Outcome of a signature check."""

    AUTHORIZED = "authorized"
    UNAUTHORIZED = "unauthorized"


def sign(raw_body: bytes, secret: str) -> str:
    """Compute the base64 HMAC-SHA256 signature for ``raw_body``."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def authenticate(
    raw_body: bytes | None, signature_header: str | None, secret: str | None
) -> AuthResult:
    """Check ``signature_header`` against ``raw_body``. Fails closed."""
    if not raw_body or not signature_header or not secret:
        return AuthResult.UNAUTHORIZED

    expected = sign(raw_body, secret).encode("ascii")
    supplied = signature_header.strip().encode("utf-8")
    if hmac.compare_digest(expected, supplied):
        return AuthResult.AUTHORIZED
    return AuthResult.UNAUTHORIZED


def require_authentic(
    raw_body: bytes | None, signature_header: str | None, secret: str | None
) -> None:
    """Raise AuthenticationFailure unless the signature verifies."""
    if authenticate(raw_body, signature_header, secret) is not AuthResult.AUTHORIZED:
        raise AuthenticationFailure("Invalid webhook signature")
