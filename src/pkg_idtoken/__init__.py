"""
pkg_idtoken

Clean-architecture OIDC ID token validation core that can be integrated
with multiple frameworks (FastAPI, etc.).
"""

__version__ = "0.1.0"

from .domain.entities import IDTokenClaims, split_scopes
from .domain.constants import DEFAULT_ACCEPTED_ALGORITHMS
from .domain.epoch import parse_epoch_time
from .domain.exceptions import (
    AuthenticationError,
    InvalidTokenError,
    MalformedTokenError,
    UnsignedTokenError,
    TooManySignaturesError,
    UnsupportedAlgorithmError,
    PayloadParseError,
    IssuerMismatchError,
    SignatureInvalidError,
    TokenExpiredError,
    DiscoveryError,
    PayloadConsistencyError,
)
from .domain.value_objects import SignatureEntry, TokenEnvelope, ValidationContext
from .domain.ports import IssuerKeyService

from .application.use_cases.validate import ValidateIDTokenUseCase

# OIDC discovery + JWKS adapter
from .adapters.oidc.issuer_key_service import OIDCIssuerKeyService

from .integrations.common.validator_factory import (
    IDTokenValidator,
    create_id_token_validator,
    create_validator_from_settings,
)
from .settings import ValidatorSettings, settings_from_env

__all__ = [
    "__version__",
    # domain core
    "IDTokenClaims",
    "split_scopes",
    "parse_epoch_time",
    "DEFAULT_ACCEPTED_ALGORITHMS",
    "SignatureEntry",
    "TokenEnvelope",
    "ValidationContext",
    "IssuerKeyService",
    # exceptions
    "AuthenticationError",
    "InvalidTokenError",
    "MalformedTokenError",
    "UnsignedTokenError",
    "TooManySignaturesError",
    "UnsupportedAlgorithmError",
    "PayloadParseError",
    "IssuerMismatchError",
    "SignatureInvalidError",
    "TokenExpiredError",
    "DiscoveryError",
    "PayloadConsistencyError",
    # use cases
    "ValidateIDTokenUseCase",
    # adapters
    "OIDCIssuerKeyService",
    # facade & config
    "IDTokenValidator",
    "create_id_token_validator",
    "create_validator_from_settings",
    "ValidatorSettings",
    "settings_from_env",
]
