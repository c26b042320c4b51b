# tests/conftest.py
import base64
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from pkg_idtoken.domain.exceptions import SignatureInvalidError

PROVIDER_URL = "https://idp.example.com/pool/abc"
NOW = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def b64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def encode_segment(doc: Any) -> str:
    return b64url(json.dumps(doc, separators=(",", ":")).encode())


def default_claims(**overrides: Any) -> dict:
    claims = {
        "sub": "user-123",
        "token_use": "id",
        "scope": "openid profile email",
        "auth_time": int(NOW.timestamp()) - 60,
        "iss": PROVIDER_URL,
        "exp": int((NOW + timedelta(hours=1)).timestamp()),
        "iat": int(NOW.timestamp()) - 60,
        "version": 2,
        "jti": "jti-1",
        "client_id": "client-1",
    }
    claims.update(overrides)
    return claims


def make_token(
    claims: Optional[dict] = None,
    *,
    alg: Optional[str] = "RS256",
    signature: str = "c2lnbmF0dXJl",
    header: Optional[dict] = None,
) -> str:
    hdr = header if header is not None else {"alg": alg, "kid": "key-1", "typ": "JWT"}
    payload = claims if claims is not None else default_claims()
    return f"{encode_segment(hdr)}.{encode_segment(payload)}.{signature}"


def payload_bytes(token: str) -> bytes:
    segment = token.split(".")[1]
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


class FakeKeyService:
    """Records calls and echoes the token's own payload unless told otherwise."""

    def __init__(self, result: Any = None, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.calls: list = []

    def verify_signature(self, token, *, context=None):
        self.calls.append((token, context))
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        try:
            return payload_bytes(token)
        except ValueError as exc:
            raise SignatureInvalidError(str(exc)) from exc


@pytest.fixture
def key_service() -> FakeKeyService:
    return FakeKeyService()
