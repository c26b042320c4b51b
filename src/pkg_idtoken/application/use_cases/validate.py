from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AbstractSet, Callable, Optional

from ...domain import rules
from ...domain.constants import DEFAULT_ACCEPTED_ALGORITHMS
from ...domain.entities import IDTokenClaims
from ...domain.exceptions import (
    DiscoveryError,
    IssuerMismatchError,
    PayloadConsistencyError,
    SignatureInvalidError,
    TokenExpiredError,
    TooManySignaturesError,
    UnsignedTokenError,
    UnsupportedAlgorithmError,
)
from ...domain.ports import IssuerKeyService
from ...domain.segments import decode_payload, parse_envelope
from ...domain.value_objects import ValidationContext

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ValidateIDTokenUseCase:
    """
    Application use case:
    - Decode the token locally and run every cheap check
    - Only then ask the IssuerKeyService to verify the signature
    - Cross-check the verified payload against the locally decoded one

    Claims read before verification are only used to reject early; they
    are returned to the caller only once the signature and the byte-level
    cross-check have both passed.
    """

    key_service: IssuerKeyService
    accepted_algorithms: AbstractSet[str] = DEFAULT_ACCEPTED_ALGORITHMS
    clock: Callable[[], datetime] = field(default=_utcnow)

    def execute(
            self,
            provider_url: str,
            token: str,
            *,
            context: Optional[ValidationContext] = None,
            now: Optional[datetime] = None,
    ) -> IDTokenClaims:
        """
        Validate an ID token issued by `provider_url` and return its claims.

        `now` defaults to `clock()`, read once per call. A naive `now` is
        interpreted as UTC.

        Raises:
            MalformedTokenError
            UnsignedTokenError / TooManySignaturesError
            UnsupportedAlgorithmError
            PayloadParseError
            IssuerMismatchError
            TokenExpiredError
            DiscoveryError / SignatureInvalidError
            PayloadConsistencyError
        """
        try:
            return self._validate(provider_url, token, context, now)
        except Exception as exc:
            logger.debug("id token rejected: %s: %s", type(exc).__name__, exc)
            raise

    # ------------------------------------------------------------------ #
    # Internal: the validation sequence
    # ------------------------------------------------------------------ #

    def _validate(
            self,
            provider_url: str,
            token: str,
            context: Optional[ValidationContext],
            now: Optional[datetime],
    ) -> IDTokenClaims:
        # ---- Decode -------------------------------------------------------
        envelope = parse_envelope(token)
        payload = decode_payload(envelope)

        # ---- Cheap checks: signature envelope ----------------------------
        count = envelope.signature_count
        if count == 0:
            raise UnsignedTokenError("id token not signed")
        if not rules.signature_count_ok(count):
            raise TooManySignaturesError(
                f"multiple signatures on id token not supported, got {count}"
            )

        alg = envelope.signatures[0].algorithm
        if not rules.algorithm_accepted(alg, self.accepted_algorithms):
            raise UnsupportedAlgorithmError(alg, self.accepted_algorithms)

        # ---- Cheap checks: claims -----------------------------------------
        claims = IDTokenClaims.from_payload(payload)

        if not rules.issuer_matches(claims.issuer, provider_url):
            raise IssuerMismatchError(expected=provider_url, actual=claims.issuer)

        current = now if now is not None else self.clock()
        if current.tzinfo is None:
            # naive instants are taken as UTC, like the epoch claims
            current = current.replace(tzinfo=timezone.utc)
        if not rules.not_expired(claims.expires_at, current):
            raise TokenExpiredError(expires_at=claims.expires_at, now=current)

        # ---- Expensive check: signature -----------------------------------
        verified = self._verify_signature(token, context)

        # ---- Consistency ----------------------------------------------------
        if not rules.payloads_consistent(payload, verified):
            logger.warning(
                "verified id token payload differs from decoded payload (issuer %s)",
                provider_url,
            )
            raise PayloadConsistencyError(
                "internal error, payload parsed did not match previous payload"
            )

        return claims

    def _verify_signature(
            self,
            token: str,
            context: Optional[ValidationContext],
    ) -> bytes:
        try:
            verified = self.key_service.verify_signature(token, context=context)
        except (DiscoveryError, SignatureInvalidError):
            # let callers distinguish these explicitly
            raise
        except Exception as exc:
            # Wrap unexpected errors in a SignatureInvalidError
            raise SignatureInvalidError(f"failed to validate token: {exc}") from exc

        if not isinstance(verified, (bytes, bytearray)):
            raise SignatureInvalidError(
                f"key service returned {type(verified).__name__}, expected bytes"
            )
        return bytes(verified)
