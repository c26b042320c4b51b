from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet

from .domain.constants import DEFAULT_ACCEPTED_ALGORITHMS


@dataclass(slots=True)
class ValidatorSettings:
    """
    ID token validation settings for a single identity provider.

    Host code decides how to construct this (env, config file, etc.).
    """
    provider_url: str
    accepted_algorithms: FrozenSet[str] = DEFAULT_ACCEPTED_ALGORITHMS
    http_timeout_seconds: float = 10.0
    jwks_cache_ttl_seconds: int = 300
    verify_ssl: bool = True


def settings_from_env() -> ValidatorSettings:
    def _bool(key: str, default: bool = True) -> bool:
        raw = os.getenv(key)
        if raw is None:
            return default
        return str(raw).strip().lower() in {"1", "true", "yes", "on"}

    def _split_csv(key: str) -> list[str]:
        raw = os.getenv(key)
        if not raw:
            return []
        return [x.strip() for x in raw.split(",") if x and x.strip()]

    def _number(key: str, default: float, cast: type) -> float:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default
        try:
            return cast(raw.strip())
        except ValueError as exc:
            raise RuntimeError(f"Invalid value for {key}: {raw!r}") from exc

    provider_url = os.getenv("OIDC_PROVIDER_URL")
    if not provider_url:
        raise RuntimeError("Missing OIDC settings: OIDC_PROVIDER_URL")

    algorithms = _split_csv("OIDC_ACCEPTED_ALGORITHMS")

    return ValidatorSettings(
        provider_url=provider_url,
        accepted_algorithms=frozenset(algorithms) if algorithms else DEFAULT_ACCEPTED_ALGORITHMS,
        http_timeout_seconds=_number("OIDC_HTTP_TIMEOUT", 10.0, float),
        jwks_cache_ttl_seconds=_number("OIDC_JWKS_CACHE_TTL", 300, int),
        verify_ssl=_bool("VERIFY_SSL", True),
    )
