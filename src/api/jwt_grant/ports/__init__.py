"""Ports (interfaces) for the JWT bearer grant bounded context.

Ports define the contracts of the external collaborators (identity
provider registry, user store, JWKS validation, replay cache, claim
dialect conversion, attribute cache, token issuance) without specifying
implementation details.
"""

from jwt_grant.ports.claims import IAuthorizationGrantCache, IClaimDialectConverter
from jwt_grant.ports.exceptions import (
    ClaimDialectConversionError,
    IdentityProviderRegistryError,
    JwksRetrievalError,
)
from jwt_grant.ports.issuance import IAccessTokenIssuer
from jwt_grant.ports.registry import IIdentityProviderRegistry, IUserStore
from jwt_grant.ports.replay_cache import IReplayCache
from jwt_grant.ports.signature import IJwksSignatureValidator

__all__ = [
    "ClaimDialectConversionError",
    "IAccessTokenIssuer",
    "IAuthorizationGrantCache",
    "IClaimDialectConverter",
    "IIdentityProviderRegistry",
    "IJwksSignatureValidator",
    "IReplayCache",
    "IUserStore",
    "IdentityProviderRegistryError",
    "JwksRetrievalError",
]
