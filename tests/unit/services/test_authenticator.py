"""Unit tests for webhook signature verification."""

import base64
import hashlib
import hmac

import pytest

from restock_service.errors import AuthenticationFailure
from restock_service.services.authenticator import (
    AuthResult,
    authenticate,
    require_authentic,
    sign,
)

SECRET = "shpss_secret"
BODY = b'{"inventory_item_id": 77, "available": 5}'


class TestSign:
    def test_matches_reference_hmac(self) -> None:
        expected = base64.b64encode(
            hmac.new(SECRET.encode(), BODY, hashlib.sha256).digest()
        ).decode()
        assert sign(BODY, SECRET) == expected


class TestAuthenticate:
    """authenticate() must fail closed."""

    def test_valid_signature(self) -> None:
        assert authenticate(BODY, sign(BODY, SECRET), SECRET) is AuthResult.AUTHORIZED

    def test_tampered_body_rejected(self) -> None:
        signature = sign(BODY, SECRET)
        tampered = BODY.replace(b"5", b"6")
        assert authenticate(tampered, signature, SECRET) is AuthResult.UNAUTHORIZED

    def test_reserialized_body_rejected(self) -> None:
        """Whitespace changes from re-serialization break the signature."""
        signature = sign(BODY, SECRET)
        reserialized = b'{"inventory_item_id":77,"available":5}'
        assert authenticate(reserialized, signature, SECRET) is AuthResult.UNAUTHORIZED

    def test_wrong_secret_rejected(self) -> None:
        assert authenticate(BODY, sign(BODY, "other"), SECRET) is AuthResult.UNAUTHORIZED

    @pytest.mark.parametrize("header", [None, "", "not-base64"])
    def test_missing_or_garbage_header_rejected(self, header: str | None) -> None:
        assert authenticate(BODY, header, SECRET) is AuthResult.UNAUTHORIZED

    @pytest.mark.parametrize("body", [None, b""])
    def test_empty_body_rejected(self, body: bytes | None) -> None:
        assert authenticate(body, sign(b"", SECRET), SECRET) is AuthResult.UNAUTHORIZED

    def test_empty_secret_rejected(self) -> None:
        """An unconfigured secret must not accept a signature made with ''."""
        assert authenticate(BODY, sign(BODY, ""), "") is AuthResult.UNAUTHORIZED

    def test_require_authentic_raises(self) -> None:
        with pytest.raises(AuthenticationFailure):
            require_authentic(BODY, "bogus", SECRET)

    def test_require_authentic_passes(self) -> None:
        require_authentic(BODY, sign(BODY, SECRET), SECRET)
