import logging
import threading
import time
from typing import Any, AbstractSet, Callable, Dict, List, Optional

import jwt
import requests
from jwt.exceptions import InvalidTokenError as JWTInvalidTokenError, PyJWTError
from requests import Session

from ...domain.constants import DEFAULT_ACCEPTED_ALGORITHMS, DISCOVERY_PATH
from ...domain.exceptions import DiscoveryError, SignatureInvalidError
from ...domain.ports import IssuerKeyService
from ...domain.value_objects import ValidationContext

logger = logging.getLogger(__name__)


class OIDCIssuerKeyService(IssuerKeyService):
    """
    Adapter implementing IssuerKeyService using OIDC discovery, JWKS and PyJWT.

    Infrastructure layer:
    - Knows how to find the provider's jwks_uri from its discovery document.
    - Knows how to fetch, cache and rotate the JWKS.
    - Knows how to verify a JWS with PyJWT.
    """

    def __init__(
        self,
        provider_url: str,
        *,
        accepted_algorithms: AbstractSet[str] = DEFAULT_ACCEPTED_ALGORITHMS,
        cache_ttl_seconds: int = 300,
        default_timeout: Optional[float] = 10.0,
        min_refresh_interval_seconds: float = 30.0,
        session: Optional[Session] = None,
        verify_ssl: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._provider_url = provider_url
        self._algorithms = sorted(accepted_algorithms)
        self._cache_ttl = cache_ttl_seconds
        self._default_timeout = default_timeout
        self._min_refresh_interval = min_refresh_interval_seconds
        self._clock = clock

        self._session = session or Session()
        self._session.verify = verify_ssl

        self._lock = threading.Lock()
        self._jwks_uri: Optional[str] = None
        self._jwks_keys: Optional[List[Dict[str, Any]]] = None
        self._jwks_last_fetched: float = 0.0
        self._last_forced_refresh: Optional[float] = None

    @property
    def discovery_url(self) -> str:
        return self._provider_url.rstrip("/") + DISCOVERY_PATH

    # ------------------------------------------------------------------ #
    # Port implementation
    # ------------------------------------------------------------------ #

    def verify_signature(
        self,
        token: str,
        *,
        context: Optional[ValidationContext] = None,
    ) -> bytes:
        """
        Verify the JWS signature and return the payload bytes it covers.

        The context timeout is a budget for the whole call: lock waits and
        every HTTP request share one deadline.

        Raises:
            DiscoveryError
            SignatureInvalidError
        """
        timeout = self._timeout(context)
        deadline = self._clock() + timeout if timeout is not None else None

        try:
            headers = jwt.get_unverified_header(token)
        except JWTInvalidTokenError as exc:
            raise SignatureInvalidError(f"failed to validate token: {exc}") from exc

        jwk = self._find_key(headers.get("kid"), deadline)

        try:
            public_key = jwt.PyJWK(jwk).key
        except PyJWTError as exc:
            raise SignatureInvalidError(f"unusable signing key: {exc}") from exc

        try:
            decoded = jwt.api_jws.PyJWS().decode_complete(
                token,
                key=public_key,
                algorithms=self._algorithms,
            )
        except JWTInvalidTokenError as exc:
            raise SignatureInvalidError(f"failed to validate token: {exc}") from exc

        return decoded["payload"]

    # ------------------------------------------------------------------ #
    # Internal helpers
    # ------------------------------------------------------------------ #

    def _timeout(self, context: Optional[ValidationContext]) -> Optional[float]:
        if context is not None and context.timeout is not None:
            return context.timeout
        return self._default_timeout

    def _remaining(self, deadline: Optional[float]) -> Optional[float]:
        if deadline is None:
            return None
        remaining = deadline - self._clock()
        if remaining <= 0:
            raise DiscoveryError("timed out resolving signing keys")
        return remaining

    def _find_key(self, kid: Optional[str], deadline: Optional[float]) -> Dict[str, Any]:
        """
        Pick the JWK for `kid`, refreshing the key set once on a miss
        so rotated keys are picked up.
        """
        key = self._select(self._fetch_jwks_keys(deadline), kid)
        if key is None:
            logger.debug("no JWK for kid %r, refreshing key set", kid)
            key = self._select(self._fetch_jwks_keys(deadline, force=True), kid)

        if key is None:
            raise SignatureInvalidError(f"No matching key found in JWKS for kid {kid!r}")
        return key

    @staticmethod
    def _select(keys: List[Dict[str, Any]], kid: Optional[str]) -> Optional[Dict[str, Any]]:
        signing = [k for k in keys if k.get("use") in (None, "sig")]
        if kid is None:
            # without a kid we can only choose when there is no choice
            return signing[0] if len(signing) == 1 else None
        return next((k for k in signing if k.get("kid") == kid), None)

    def _fetch_jwks_keys(self, deadline: Optional[float], force: bool = False) -> List[Dict[str, Any]]:
        """
        Fetch JWKS keys with simple in-memory caching.

        Forced refreshes are limited to one per `min_refresh_interval_seconds`;
        inside that window the cached keys are returned as they are.
        """
        remaining = self._remaining(deadline)
        acquired = self._lock.acquire(timeout=remaining if remaining is not None else -1)
        if not acquired:
            raise DiscoveryError("timed out waiting for the JWKS cache")

        try:
            now = self._clock()
            fresh = (
                self._jwks_keys is not None
                and (now - self._jwks_last_fetched) < self._cache_ttl
            )
            if fresh and not force:
                return self._jwks_keys

            if force and self._jwks_keys is not None and self._last_forced_refresh is not None:
                if now - self._last_forced_refresh < self._min_refresh_interval:
                    logger.debug("JWKS refreshed %.1fs ago, not refreshing again",
                                 now - self._last_forced_refresh)
                    return self._jwks_keys

            if self._jwks_uri is None or force:
                self._jwks_uri = self._discover_jwks_uri(deadline)

            body = self._get_json(self._jwks_uri, deadline)
            keys = body.get("keys")
            if not isinstance(keys, list):
                raise DiscoveryError(f"JWKS at {self._jwks_uri} has no 'keys' list")

            self._jwks_keys = [k for k in keys if isinstance(k, dict)]
            self._jwks_last_fetched = self._clock()
            if force:
                self._last_forced_refresh = self._jwks_last_fetched
            logger.debug("fetched %d JWKs from %s", len(self._jwks_keys), self._jwks_uri)
            return self._jwks_keys
        finally:
            self._lock.release()

    def _discover_jwks_uri(self, deadline: Optional[float]) -> str:
        metadata = self._get_json(self.discovery_url, deadline)

        issuer = metadata.get("issuer")
        if issuer is not None and issuer != self._provider_url:
            raise DiscoveryError(
                f"provider metadata issuer mismatch expected: {self._provider_url} actual: {issuer}"
            )

        jwks_uri = metadata.get("jwks_uri")
        if not isinstance(jwks_uri, str) or not jwks_uri:
            raise DiscoveryError(f"provider metadata at {self.discovery_url} missing 'jwks_uri'")
        return jwks_uri

    def _get_json(self, url: str, deadline: Optional[float]) -> Dict[str, Any]:
        timeout = self._remaining(deadline)
        try:
            response = self._session.get(url, timeout=timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise DiscoveryError(f"failed to fetch {url}: {exc}") from exc
        except ValueError as exc:
            raise DiscoveryError(f"invalid JSON from {url}: {exc}") from exc

        if not isinstance(body, dict):
            raise DiscoveryError(f"expected a JSON object from {url}")
        return body
