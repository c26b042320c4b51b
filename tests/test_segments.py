# tests/test_segments.py
import json

import pytest

from pkg_idtoken.domain.constants import Serialization
from pkg_idtoken.domain.exceptions import MalformedTokenError
from pkg_idtoken.domain.segments import b64url_decode, decode_payload, parse_envelope, split_segments

from conftest import b64url, encode_segment, make_token, payload_bytes


def test_b64url_decode_unpadded():
    assert b64url_decode("aGk") == b"hi"
    assert b64url_decode("") == b""
    assert b64url_decode("-_8") == b"\xfb\xff"


@pytest.mark.parametrize("segment", ["aGk=", "a+b/", "a", "abcde", "a b"])
def test_b64url_decode_rejects_invalid(segment):
    with pytest.raises(MalformedTokenError):
        b64url_decode(segment)


@pytest.mark.parametrize("token", ["", "no-dots", "a.b.c.d"])
def test_split_segments_requires_two_or_three_parts(token):
    with pytest.raises(MalformedTokenError):
        split_segments(token)


def test_compact_envelope():
    token = make_token()
    envelope = parse_envelope(token)

    assert envelope.serialization is Serialization.COMPACT
    assert envelope.signature_count == 1
    assert envelope.signatures[0].algorithm == "RS256"
    assert envelope.signatures[0].key_id == "key-1"
    assert decode_payload(envelope) == payload_bytes(token)


def test_payload_bytes_are_not_reserialized():
    raw = b'{ "iss" : "x",\n  "sub":"y" }'
    token = f"{encode_segment({'alg': 'RS256'})}.{b64url(raw)}.sig"
    assert decode_payload(parse_envelope(token)) == raw


@pytest.mark.parametrize("suffix", ["", "."])
def test_compact_without_signature_has_zero_entries(suffix):
    token = make_token().rsplit(".", 1)[0] + suffix
    assert parse_envelope(token).signature_count == 0


def test_compact_header_must_be_json_object():
    token = f"{b64url(b'[1]')}.{encode_segment({})}.sig"
    with pytest.raises(MalformedTokenError):
        parse_envelope(token)


def test_compact_invalid_payload_segment():
    header = encode_segment({"alg": "RS256"})
    envelope = parse_envelope(f"{header}.***.sig")
    with pytest.raises(MalformedTokenError):
        decode_payload(envelope)


def _protected(alg: str, kid: str) -> str:
    return encode_segment({"alg": alg, "kid": kid})


def test_json_general_serialization_counts_signatures():
    token = json.dumps(
        {
            "payload": encode_segment({"iss": "x"}),
            "signatures": [
                {"protected": _protected("RS256", "k1"), "signature": "c2ln"},
                {"protected": _protected("ES256", "k2"), "header": {"x": 1}, "signature": "c2ln"},
            ],
        }
    )
    envelope = parse_envelope(token)

    assert envelope.serialization is Serialization.JSON
    assert envelope.signature_count == 2
    assert [s.algorithm for s in envelope.signatures] == ["RS256", "ES256"]
    assert envelope.signatures[1].header["x"] == 1
    assert decode_payload(envelope) == b'{"iss":"x"}'


def test_json_flattened_and_empty_serialization():
    payload = encode_segment({"iss": "x"})
    flattened = json.dumps({"payload": payload, "protected": _protected("RS256", "k"), "signature": "c2ln"})
    empty = json.dumps({"payload": payload, "signatures": []})

    assert parse_envelope(flattened).signature_count == 1
    assert parse_envelope(empty).signature_count == 0


@pytest.mark.parametrize(
    "token",
    [
        "{not json",
        '{"signatures": []}',
        '{"payload": "e30", "signatures": {}}',
        '{"payload": "e30", "signatures": [42]}',
        '{"payload": "e30", "signatures": [{"protected": 1}]}',
    ],
)
def test_json_serialization_malformed(token):
    with pytest.raises(MalformedTokenError):
        parse_envelope(token)
