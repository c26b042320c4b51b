from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


class InvalidTokenError(AuthenticationError):
    """Raised when token is malformed or invalid."""
    pass


class MalformedTokenError(InvalidTokenError):
    """Raised when the token cannot be split or base64url-decoded."""
    pass


class UnsignedTokenError(InvalidTokenError):
    """Raised when the token carries no signature."""
    pass


class TooManySignaturesError(InvalidTokenError):
    """Raised when the token carries more than one signature."""
    pass


class UnsupportedAlgorithmError(InvalidTokenError):
    """Raised when the token is signed with an algorithm we don't accept."""

    def __init__(self, algorithm: Optional[str], accepted: Iterable[str]) -> None:
        self.algorithm = algorithm
        self.accepted = tuple(sorted(accepted))
        super().__init__(
            f"id token signed with unsupported algorithm, "
            f"expected {list(self.accepted)!r} got {algorithm!r}"
        )


class PayloadParseError(InvalidTokenError):
    """Raised when the payload is not a valid claims document."""
    pass


class IssuerMismatchError(InvalidTokenError):
    """Raised when the `iss` claim differs from the expected provider URL."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"failed to match issuer expected: {expected} actual: {actual}"
        )


class SignatureInvalidError(InvalidTokenError):
    """Raised when cryptographic verification fails."""
    pass


class TokenExpiredError(AuthenticationError):
    """Raised when token has expired."""

    def __init__(self, expires_at: Optional[datetime], now: datetime) -> None:
        self.expires_at = expires_at
        self.now = now
        actual = expires_at.isoformat() if expires_at else "missing"
        super().__init__(
            f"token expired current: {now.isoformat()} actual: {actual}"
        )


class DiscoveryError(AuthenticationError):
    """Raised when provider metadata or signing keys can't be resolved."""
    pass


class PayloadConsistencyError(AuthenticationError):
    """
    Raised when the verified payload differs from the one decoded locally.

    Only reachable after every other check passed, so it points at a bug in
    this library or in the key service rather than at the token itself.
    """
    pass
