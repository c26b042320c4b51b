# src/pkg_idtoken/domain/value_objects.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Tuple

from .constants import Serialization


# --- Token envelope --------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SignatureEntry:
    """
    One signature carried by a JWS.

    `header` is the merged protected + unprotected JOSE header of that
    signature. Nothing here has been verified.
    """
    algorithm: Optional[str]
    key_id: Optional[str] = None
    header: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class TokenEnvelope:
    """
    Untrusted structural view of a token, derived from the raw string.

    - payload_segment: base64url text of the payload, exactly as sent
    - signatures:      zero or more signature entries, in token order
    """

    serialization: Serialization
    payload_segment: str
    signatures: Tuple[SignatureEntry, ...] = ()

    @property
    def signature_count(self) -> int:
        return len(self.signatures)


# --- Call context ------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ValidationContext:
    """
    Per-call budget for the expensive verification step.

    The validator never looks inside it; it is handed unchanged to the
    IssuerKeyService, which applies `timeout` to every network call it makes.
    """
    timeout: Optional[float] = None
