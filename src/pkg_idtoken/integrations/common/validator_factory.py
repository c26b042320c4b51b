from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import AbstractSet, Optional

from requests import Session

from ...adapters.oidc.issuer_key_service import OIDCIssuerKeyService
from ...application.use_cases.validate import ValidateIDTokenUseCase
from ...domain.constants import DEFAULT_ACCEPTED_ALGORITHMS
from ...domain.entities import IDTokenClaims
from ...domain.ports import IssuerKeyService
from ...domain.value_objects import ValidationContext
from ...settings import ValidatorSettings


@dataclass(slots=True)
class IDTokenValidator:
    """
    Framework-agnostic facade bound to one identity provider.

    Integrations (FastAPI, etc.) adapt this to their own dependency systems.
    """

    provider_url: str
    use_case: ValidateIDTokenUseCase

    def validate(
            self,
            token: str,
            *,
            context: Optional[ValidationContext] = None,
            now: Optional[datetime] = None,
    ) -> IDTokenClaims:
        """Token -> IDTokenClaims (or raise auth exceptions)."""
        return self.use_case.execute(
            self.provider_url,
            token,
            context=context,
            now=now,
        )


def create_id_token_validator(
        *,
        provider_url: str,
        accepted_algorithms: AbstractSet[str] = DEFAULT_ACCEPTED_ALGORITHMS,
        key_service: IssuerKeyService | None = None,
        cache_ttl_seconds: int = 300,
        min_refresh_interval_seconds: float = 30.0,
        http_timeout_seconds: Optional[float] = 10.0,
        verify_ssl: bool = True,
        session: Session | None = None,
) -> IDTokenValidator:
    """
    High-level factory: provider config -> IDTokenValidator.

    - builds an OIDCIssuerKeyService unless one is supplied
    - wires ValidateIDTokenUseCase
    - returns an IDTokenValidator facade.
    """
    if key_service is None:
        key_service = OIDCIssuerKeyService(
            provider_url,
            accepted_algorithms=accepted_algorithms,
            cache_ttl_seconds=cache_ttl_seconds,
            min_refresh_interval_seconds=min_refresh_interval_seconds,
            default_timeout=http_timeout_seconds,
            session=session,
            verify_ssl=verify_ssl,
        )

    use_case = ValidateIDTokenUseCase(
        key_service=key_service,
        accepted_algorithms=frozenset(accepted_algorithms),
    )
    return IDTokenValidator(provider_url=provider_url, use_case=use_case)


def create_validator_from_settings(
        settings: ValidatorSettings,
        *,
        session: Session | None = None,
) -> IDTokenValidator:
    return create_id_token_validator(
        provider_url=settings.provider_url,
        accepted_algorithms=settings.accepted_algorithms,
        cache_ttl_seconds=settings.jwks_cache_ttl_seconds,
        http_timeout_seconds=settings.http_timeout_seconds,
        verify_ssl=settings.verify_ssl,
        session=session,
    )
