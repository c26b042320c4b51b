from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, List, Mapping, Optional

from .epoch import parse_epoch_time
from .exceptions import PayloadParseError


def split_scopes(scope: str) -> List[str]:
    """
    Split a space-delimited scope string.

    No trimming or de-duplication: "" -> [""], "a  b" -> ["a", "", "b"].
    """
    return scope.split(" ")


def _reject_constant(name: str) -> Any:
    raise PayloadParseError(f"invalid JSON number: {name}")


@dataclass(frozen=True, slots=True)
class IDTokenClaims:
    """
    Typed view over an ID token payload.

    Built fresh for every validation call and never mutated afterwards.
    Members we don't model are still reachable through `raw`.
    """
    subject: str = ""
    token_use: str = ""
    scope: str = ""
    auth_time: Optional[datetime] = None
    issuer: str = ""
    expires_at: Optional[datetime] = None
    issued_at: Optional[datetime] = None
    version: int = 0
    jti: str = ""
    client_id: str = ""

    raw: Mapping[str, Any] = field(default_factory=dict, repr=False, compare=False)

    # --- scopes -------------------------------------------------------------

    @property
    def scopes(self) -> List[str]:
        return split_scopes(self.scope)

    def has_scope(self, name: str) -> bool:
        return name in self.scopes

    # --- parsing --------------------------------------------------------------

    @classmethod
    def from_payload(cls, payload: bytes) -> "IDTokenClaims":
        """
        Parse raw payload bytes into claims.

        Raises:
            PayloadParseError
        """
        try:
            doc = json.loads(payload, parse_constant=_reject_constant)
        except PayloadParseError:
            raise
        except (ValueError, TypeError) as exc:
            # UnicodeDecodeError and JSONDecodeError are both ValueErrors
            raise PayloadParseError(f"failed to parse jwt payload: {exc}") from exc

        if not isinstance(doc, dict):
            raise PayloadParseError(
                f"jwt payload must be a JSON object, got {type(doc).__name__}"
            )

        return cls(
            subject=_string(doc, "sub"),
            token_use=_string(doc, "token_use"),
            scope=_string(doc, "scope"),
            auth_time=_time(doc, "auth_time"),
            issuer=_string(doc, "iss"),
            expires_at=_time(doc, "exp"),
            issued_at=_time(doc, "iat"),
            version=_integer(doc, "version"),
            jti=_string(doc, "jti"),
            client_id=_string(doc, "client_id"),
            raw=MappingProxyType(doc),
        )


# --- field readers -------------------------------------------------------------


def _string(doc: Mapping[str, Any], key: str) -> str:
    value = doc.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise PayloadParseError(
            f"claim {key!r} must be a string, got {type(value).__name__}"
        )
    return value


def _integer(doc: Mapping[str, Any], key: str) -> int:
    value = doc.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadParseError(
            f"claim {key!r} must be an integer, got {type(value).__name__}"
        )
    return value


def _time(doc: Mapping[str, Any], key: str) -> Optional[datetime]:
    value = doc.get(key)
    if value is None:
        return None
    try:
        return parse_epoch_time(value)
    except PayloadParseError as exc:
        raise PayloadParseError(f"claim {key!r}: {exc}") from exc
