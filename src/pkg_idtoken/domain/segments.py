"""
Segment decoding for JWS tokens.

Only structure is read here. Nothing is verified, so everything returned
must be treated as untrusted until the signature has been checked.
"""

from __future__ import annotations

import base64
import binascii
import json
import re
from typing import Any, Dict, List, Mapping

from .constants import SEGMENT_DELIMITER, Serialization
from .exceptions import MalformedTokenError
from .value_objects import SignatureEntry, TokenEnvelope

_B64URL_RE = re.compile(r"[A-Za-z0-9_-]*")


def b64url_decode(segment: str) -> bytes:
    """
    Strict unpadded base64url decoding.

    Padding characters, characters outside the URL-safe alphabet and
    impossible lengths are all rejected with MalformedTokenError.
    """
    if not _B64URL_RE.fullmatch(segment):
        raise MalformedTokenError("segment is not unpadded base64url")
    if len(segment) % 4 == 1:
        raise MalformedTokenError("segment has an invalid base64url length")

    padded = segment + "=" * (-len(segment) % 4)
    try:
        return base64.urlsafe_b64decode(padded)
    except (binascii.Error, ValueError) as exc:
        raise MalformedTokenError(f"malformed jwt segment: {exc}") from exc


def _json_object(raw: bytes, what: str) -> Dict[str, Any]:
    try:
        doc = json.loads(raw)
    except ValueError as exc:
        raise MalformedTokenError(f"{what} is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise MalformedTokenError(f"{what} must be a JSON object")
    return doc


def _signature_entry(header: Mapping[str, Any]) -> SignatureEntry:
    alg = header.get("alg")
    kid = header.get("kid")
    return SignatureEntry(
        algorithm=alg if isinstance(alg, str) else None,
        key_id=kid if isinstance(kid, str) else None,
        header=dict(header),
    )


# --- compact serialization ---------------------------------------------------


def split_segments(token: str) -> List[str]:
    """Split a compact token; at least header and payload are required."""
    parts = token.split(SEGMENT_DELIMITER)
    if not 2 <= len(parts) <= 3:
        raise MalformedTokenError(
            f"malformed jwt, expected 3 parts got {len(parts)}"
        )
    return parts


def _parse_compact(token: str) -> TokenEnvelope:
    parts = split_segments(token)
    header = _json_object(b64url_decode(parts[0]), "jwt header")

    signatures: tuple[SignatureEntry, ...] = ()
    # "header.payload" and "header.payload." carry no signature at all
    if len(parts) == 3 and parts[2]:
        signatures = (_signature_entry(header),)

    return TokenEnvelope(
        serialization=Serialization.COMPACT,
        payload_segment=parts[1],
        signatures=signatures,
    )


# --- JSON serialization ------------------------------------------------------


def _json_signature(item: Any) -> SignatureEntry:
    if not isinstance(item, dict):
        raise MalformedTokenError("jws signature entry must be a JSON object")

    header: Dict[str, Any] = {}
    protected = item.get("protected")
    if protected is not None:
        if not isinstance(protected, str):
            raise MalformedTokenError("jws protected header must be a string")
        header.update(_json_object(b64url_decode(protected), "jws protected header"))

    unprotected = item.get("header")
    if unprotected is not None:
        if not isinstance(unprotected, dict):
            raise MalformedTokenError("jws unprotected header must be an object")
        header.update(unprotected)

    return _signature_entry(header)


def _parse_json(token: str) -> TokenEnvelope:
    try:
        doc = json.loads(token)
    except ValueError as exc:
        raise MalformedTokenError(f"malformed jws json: {exc}") from exc
    if not isinstance(doc, dict):
        raise MalformedTokenError("jws json serialization must be an object")

    payload = doc.get("payload")
    if not isinstance(payload, str):
        raise MalformedTokenError("jws json serialization is missing its payload")

    if "signatures" in doc:
        items = doc["signatures"]
        if not isinstance(items, list):
            raise MalformedTokenError("jws 'signatures' must be a list")
        signatures = tuple(_json_signature(item) for item in items)
    elif "signature" in doc:
        # flattened syntax
        signatures = (_json_signature(doc),)
    else:
        signatures = ()

    return TokenEnvelope(
        serialization=Serialization.JSON,
        payload_segment=payload,
        signatures=signatures,
    )


# --- public entry points -----------------------------------------------------


def parse_envelope(token: str) -> TokenEnvelope:
    """
    Parse a token in compact or JSON serialization into a TokenEnvelope.

    Raises:
        MalformedTokenError
    """
    if token.lstrip().startswith("{"):
        return _parse_json(token)
    return _parse_compact(token)


def decode_payload(envelope: TokenEnvelope) -> bytes:
    """Return the payload bytes exactly as carried by the token."""
    return b64url_decode(envelope.payload_segment)
