"""Dependency wiring for the JWT bearer grant bounded context.

Composes settings, infrastructure adapters and probes into a grant
handler. The ``get_*`` factories are cached so every caller in the process
shares one registry, one replay cache and one JWKS key-set cache; the
single-use guarantee of a jti only holds within one replay cache.
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache

from infrastructure.logging import configure_logging
from infrastructure.settings import JWTGrantSettings, get_jwt_grant_settings
from jwt_grant.application.observability import (
    DefaultClaimProjectionProbe,
    DefaultGrantValidationProbe,
)
from jwt_grant.application.resolver import IdentityProviderResolver
from jwt_grant.application.services import (
    ClaimProjectionService,
    GrantValidationPolicy,
    JWTBearerGrantHandler,
)
from jwt_grant.application.signature import SignatureVerifier
from jwt_grant.application.strategies import subject_binder_for
from jwt_grant.infrastructure import (
    InMemoryAuthorizationGrantCache,
    InMemoryIdentityProviderRegistry,
    InMemoryReplayCache,
    JWKSSignatureValidator,
    MappingClaimDialectConverter,
    UsernameUserStore,
)
from jwt_grant.infrastructure.observability import DefaultJWKSValidatorProbe
from jwt_grant.ports import (
    IAccessTokenIssuer,
    IAuthorizationGrantCache,
    IClaimDialectConverter,
    IIdentityProviderRegistry,
    IJwksSignatureValidator,
    IReplayCache,
    IUserStore,
)


def policy_from_settings(settings: JWTGrantSettings) -> GrantValidationPolicy:
    """Translate settings into the plain values the handler consumes."""
    return GrantValidationPolicy(
        validity_period_minutes=settings.validity_period,
        cache_used_jti=settings.cache_used_jti,
        timestamp_skew_millis=settings.timestamp_skew_millis,
        split_authz_user_3_way=settings.split_authz_user_3_way,
        default_tenant_domain=settings.default_tenant_domain,
    )


@lru_cache
def get_identity_provider_registry() -> InMemoryIdentityProviderRegistry:
    """Get the process-wide identity provider registry."""
    return InMemoryIdentityProviderRegistry()


@lru_cache
def get_replay_cache() -> InMemoryReplayCache:
    """Get the process-wide jti replay cache."""
    return InMemoryReplayCache()


@lru_cache
def get_authorization_grant_cache() -> InMemoryAuthorizationGrantCache:
    """Get the process-wide attribute cache keyed by access token."""
    return InMemoryAuthorizationGrantCache()


@lru_cache
def get_jwks_signature_validator() -> JWKSSignatureValidator:
    """Get the JWKS validator configured from settings."""
    settings = get_jwt_grant_settings()
    return JWKSSignatureValidator(
        probe=DefaultJWKSValidatorProbe(),
        cache_ttl=timedelta(seconds=settings.jwks_cache_ttl_seconds),
        timeout=settings.jwks_http_timeout_seconds,
        refresh_cooldown=timedelta(seconds=settings.jwks_refresh_cooldown_seconds),
    )


def build_jwt_bearer_grant_handler(
    settings: JWTGrantSettings,
    registry: IIdentityProviderRegistry,
    replay_cache: IReplayCache,
    jwks_validator: IJwksSignatureValidator,
    grant_cache: IAuthorizationGrantCache,
    user_store: IUserStore | None = None,
    dialect_converter: IClaimDialectConverter | None = None,
    token_issuer: IAccessTokenIssuer | None = None,
) -> JWTBearerGrantHandler:
    """Assemble a grant handler from explicit collaborators.

    Args:
        settings: Validation settings
        registry: Identity provider registry
        replay_cache: jti replay cache
        jwks_validator: Validator for providers verified through JWKS
        grant_cache: Attribute cache filled by claim projection
        user_store: User store for the split subject binding mode
        dialect_converter: Claim dialect converter for claim projection
        token_issuer: Access token issuance pipeline used by ``issue``

    Returns:
        A configured JWTBearerGrantHandler
    """
    probe = DefaultGrantValidationProbe()
    resolver = IdentityProviderResolver(registry, probe=probe)
    policy = policy_from_settings(settings)

    claim_projection = ClaimProjectionService(
        resolver=resolver,
        dialect_converter=dialect_converter or MappingClaimDialectConverter(),
        grant_cache=grant_cache,
        default_tenant_domain=settings.default_tenant_domain,
        probe=DefaultClaimProjectionProbe(),
    )

    return JWTBearerGrantHandler(
        policy=policy,
        resolver=resolver,
        signature_verifier=SignatureVerifier(
            jwks_validator,
            jwks_validation_enabled=settings.jwks_validation_enabled,
            probe=probe,
        ),
        replay_cache=replay_cache,
        subject_binder=subject_binder_for(
            settings.split_authz_user_3_way, user_store or UsernameUserStore()
        ),
        token_issuer=token_issuer,
        claim_projection=claim_projection,
        probe=probe,
    )


@lru_cache
def get_jwt_bearer_grant_handler() -> JWTBearerGrantHandler:
    """Get the process-wide grant handler backed by the default adapters.

    Configures logging on first use. The handler has no access token
    issuer; deployments that call ``issue`` build their own handler with
    ``build_jwt_bearer_grant_handler``.
    """
    settings = get_jwt_grant_settings()
    configure_logging(settings.log_level)
    return build_jwt_bearer_grant_handler(
        settings=settings,
        registry=get_identity_provider_registry(),
        replay_cache=get_replay_cache(),
        jwks_validator=get_jwks_signature_validator(),
        grant_cache=get_authorization_grant_cache(),
    )
