"""
Stateless checks over the token envelope and claims.

Every predicate is pure: callers pass `now` and the accepted algorithm set
explicitly, so results depend on the arguments alone.
"""

from __future__ import annotations

import hmac
from datetime import datetime
from typing import AbstractSet, Optional

from .constants import DEFAULT_ACCEPTED_ALGORITHMS


def algorithm_accepted(
    alg: Optional[str],
    accepted: AbstractSet[str] = DEFAULT_ACCEPTED_ALGORITHMS,
) -> bool:
    return alg is not None and alg in accepted


def signature_count_ok(count: int) -> bool:
    return count == 1


def issuer_matches(issuer: str, expected: str) -> bool:
    # exact equality, no trailing-slash or case normalisation
    return issuer == expected


def not_expired(expires_at: Optional[datetime], now: datetime) -> bool:
    """True iff `expires_at` is strictly after `now`; a missing expiry never passes."""
    if expires_at is None:
        return False
    return expires_at > now


def payloads_consistent(decoded: bytes, verified: bytes) -> bool:
    return hmac.compare_digest(decoded, verified)
