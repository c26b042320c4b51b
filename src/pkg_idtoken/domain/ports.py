from __future__ import annotations

from typing import Optional, Protocol

from .value_objects import ValidationContext


class IssuerKeyService(Protocol):
    """
    Port for the expensive half of validation: resolving the issuer's
    signing keys and verifying the token signature.

    Implementations live in the adapters layer (e.g. OIDC discovery + JWKS).
    """

    def verify_signature(
        self,
        token: str,
        *,
        context: Optional[ValidationContext] = None,
    ) -> bytes:
        """
        Verify the token signature and return the payload bytes it covers.

        Should:
          - resolve provider metadata and keys (caching is up to the adapter)
          - honour `context.timeout` for any network call
        Raises:
          - DiscoveryError when metadata or keys can't be obtained
          - SignatureInvalidError when verification fails
        """
        ...
