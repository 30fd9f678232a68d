"""Infrastructure adapters for the JWT bearer grant bounded context."""

from jwt_grant.infrastructure.claim_dialect import MappingClaimDialectConverter
from jwt_grant.infrastructure.grant_cache import InMemoryAuthorizationGrantCache
from jwt_grant.infrastructure.identity_provider_registry import (
    InMemoryIdentityProviderRegistry,
)
from jwt_grant.infrastructure.jwks_validator import JWKSSignatureValidator
from jwt_grant.infrastructure.replay_cache import InMemoryReplayCache
from jwt_grant.infrastructure.user_store import UsernameUserStore

__all__ = [
    "InMemoryAuthorizationGrantCache",
    "InMemoryIdentityProviderRegistry",
    "InMemoryReplayCache",
    "JWKSSignatureValidator",
    "MappingClaimDialectConverter",
    "UsernameUserStore",
]
