from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials

from .security import DEFAULT_COOKIE_NAME, bearer_scheme, extract_token_from_request
from ..common.validator_factory import IDTokenValidator
from ...domain.entities import IDTokenClaims
from ...domain.exceptions import (
    AuthenticationError,
    DiscoveryError,
    PayloadConsistencyError,
    TokenExpiredError,
)
from ...domain.value_objects import ValidationContext

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class FastAPIIDTokenAuth:
    """
    FastAPI integration for pkg_idtoken.

    Validation may hit the provider's JWKS endpoint, so it runs in the
    threadpool instead of blocking the event loop.
    """

    validator: IDTokenValidator
    cookie_name: Optional[str] = DEFAULT_COOKIE_NAME
    timeout: Optional[float] = None

    # ------------------------------------------------------------------ #
    # helpers
    # ------------------------------------------------------------------ #

    async def _validate(self, token: str) -> IDTokenClaims:
        context = ValidationContext(timeout=self.timeout)
        return await run_in_threadpool(self.validator.validate, token, context=context)

    @staticmethod
    def _to_http(exc: AuthenticationError) -> HTTPException:
        if isinstance(exc, TokenExpiredError):
            return HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token expired",
            )
        if isinstance(exc, DiscoveryError):
            return HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Identity provider unavailable",
            )
        if isinstance(exc, PayloadConsistencyError):
            logger.error("id token validation hit an internal error: %s", exc)
            return HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Token validation failed",
            )
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        )

    # ------------------------------------------------------------------ #
    # Dependencies
    # ------------------------------------------------------------------ #

    async def get_current_claims(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> IDTokenClaims:
        """Dependency: require a valid ID token."""
        token = extract_token_from_request(request, credentials, self.cookie_name)
        try:
            return await self._validate(token)
        except AuthenticationError as exc:
            raise self._to_http(exc) from exc

    async def get_optional_claims(
            self,
            request: Request,
            credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    ) -> IDTokenClaims | None:
        """Dependency: optional ID token; invalid or missing -> None."""
        try:
            token = extract_token_from_request(request, credentials, self.cookie_name)
        except HTTPException:
            # no token anywhere -> anonymous
            return None

        try:
            return await self._validate(token)
        except (DiscoveryError, PayloadConsistencyError) as exc:
            # not the caller's fault, don't silently downgrade to anonymous
            raise self._to_http(exc) from exc
        except AuthenticationError:
            return None
