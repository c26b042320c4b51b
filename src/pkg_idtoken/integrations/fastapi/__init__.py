from __future__ import annotations

from typing import AbstractSet, Optional

from .deps import FastAPIIDTokenAuth
from .security import DEFAULT_COOKIE_NAME, bearer_scheme, extract_token_from_request
from ..common.validator_factory import IDTokenValidator, create_id_token_validator
from ...domain.constants import DEFAULT_ACCEPTED_ALGORITHMS


def create_fastapi_auth(
    *,
    provider_url: str,
    accepted_algorithms: AbstractSet[str] = DEFAULT_ACCEPTED_ALGORITHMS,
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME,
    timeout: Optional[float] = None,
) -> FastAPIIDTokenAuth:
    """
    High-level helper for FastAPI apps:

    - Creates an IDTokenValidator for the provider
    - Wraps it in FastAPIIDTokenAuth, exposing dependencies like:

        fastapi_auth.get_current_claims
        fastapi_auth.get_optional_claims
    """
    validator: IDTokenValidator = create_id_token_validator(
        provider_url=provider_url,
        accepted_algorithms=accepted_algorithms,
    )
    return FastAPIIDTokenAuth(validator=validator, cookie_name=cookie_name, timeout=timeout)


__all__ = [
    "FastAPIIDTokenAuth",
    "bearer_scheme",
    "create_fastapi_auth",
    "extract_token_from_request",
]
