# tests/test_fastapi.py
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from pkg_idtoken.application.use_cases.validate import ValidateIDTokenUseCase
from pkg_idtoken.domain.entities import IDTokenClaims
from pkg_idtoken.domain.exceptions import DiscoveryError
from pkg_idtoken.integrations.common.validator_factory import IDTokenValidator
from pkg_idtoken.integrations.fastapi import FastAPIIDTokenAuth

from conftest import NOW, PROVIDER_URL, FakeKeyService, default_claims, make_token


def _client(key_service, timeout=None) -> TestClient:
    use_case = ValidateIDTokenUseCase(key_service=key_service, clock=lambda: NOW)
    auth = FastAPIIDTokenAuth(
        validator=IDTokenValidator(provider_url=PROVIDER_URL, use_case=use_case),
        timeout=timeout,
    )

    app = FastAPI()

    @app.get("/me")
    async def me(claims: IDTokenClaims = Depends(auth.get_current_claims)):
        return {"sub": claims.subject, "scopes": claims.scopes}

    @app.get("/maybe")
    async def maybe(claims: IDTokenClaims | None = Depends(auth.get_optional_claims)):
        return {"sub": claims.subject if claims else None}

    return TestClient(app)


def test_bearer_token_is_validated(key_service):
    client = _client(key_service, timeout=3.0)
    resp = client.get("/me", headers={"Authorization": f"Bearer {make_token()}"})

    assert resp.status_code == 200
    assert resp.json() == {"sub": "user-123", "scopes": ["openid", "profile", "email"]}
    assert key_service.calls[0][1].timeout == 3.0


def test_cookie_fallback(key_service):
    client = _client(key_service)
    client.cookies.set("id_token", make_token())

    resp = client.get("/me")
    assert resp.status_code == 200


def test_missing_token_is_401(key_service):
    resp = _client(key_service).get("/me")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Not authenticated"


def test_expired_token_is_401(key_service):
    token = make_token(default_claims(exp=int(NOW.timestamp())))
    resp = _client(key_service).get("/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Token expired"


def test_invalid_token_is_401(key_service):
    resp = _client(key_service).get("/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


def test_discovery_failure_is_503():
    client = _client(FakeKeyService(error=DiscoveryError("idp down")))
    resp = client.get("/me", headers={"Authorization": f"Bearer {make_token()}"})
    assert resp.status_code == 503


def test_consistency_failure_is_500():
    client = _client(FakeKeyService(result=b"{}"))
    resp = client.get("/me", headers={"Authorization": f"Bearer {make_token()}"})
    assert resp.status_code == 500


@pytest.mark.parametrize(
    "headers,expected",
    [
        ({}, None),
        ({"Authorization": "Bearer not-a-jwt"}, None),
    ],
)
def test_optional_claims_anonymous(key_service, headers, expected):
    resp = _client(key_service).get("/maybe", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"sub": expected}


def test_optional_claims_with_token(key_service):
    resp = _client(key_service).get("/maybe", headers={"Authorization": f"Bearer {make_token()}"})
    assert resp.json() == {"sub": "user-123"}


def test_optional_claims_do_not_hide_provider_outage():
    client = _client(FakeKeyService(error=DiscoveryError("idp down")))
    resp = client.get("/maybe", headers={"Authorization": f"Bearer {make_token()}"})
    assert resp.status_code == 503
