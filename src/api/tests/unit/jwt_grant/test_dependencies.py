"""Unit tests for JWT grant dependency wiring."""

from unittest.mock import patch

import pytest

from infrastructure.settings import JWTGrantSettings
from jwt_grant.application.services import JWTBearerGrantHandler
from jwt_grant.application.strategies import LocalSubjectBinder, UserStoreSubjectBinder
from jwt_grant.dependencies import (
    build_jwt_bearer_grant_handler,
    get_jwt_bearer_grant_handler,
    get_replay_cache,
    policy_from_settings,
)
from jwt_grant.infrastructure import (
    InMemoryAuthorizationGrantCache,
    InMemoryIdentityProviderRegistry,
    InMemoryReplayCache,
)


class TestPolicyFromSettings:
    def test_converts_units(self):
        policy = policy_from_settings(
            JWTGrantSettings(
                validity_period=10,
                timestamp_skew_seconds=30,
                cache_used_jti=False,
                default_tenant_domain="acme.com",
            )
        )

        assert policy.validity_period_minutes == 10
        assert policy.validity_window_millis == 600_000
        assert policy.timestamp_skew_millis == 30_000
        assert policy.cache_used_jti is False
        assert policy.default_tenant_domain == "acme.com"


class TestBuildHandler:
    def _build(self, mock_jwks_validator, **settings):
        return build_jwt_bearer_grant_handler(
            settings=JWTGrantSettings(**settings),
            registry=InMemoryIdentityProviderRegistry(),
            replay_cache=InMemoryReplayCache(),
            jwks_validator=mock_jwks_validator,
            grant_cache=InMemoryAuthorizationGrantCache(),
        )

    def test_local_subject_binding_by_default(self, mock_jwks_validator):
        handler = self._build(mock_jwks_validator)

        assert isinstance(handler, JWTBearerGrantHandler)
        assert isinstance(handler._subject_binder, LocalSubjectBinder)

    def test_split_subject_binding(self, mock_jwks_validator):
        handler = self._build(mock_jwks_validator, split_authz_user_3_way=True)

        assert isinstance(handler._subject_binder, UserStoreSubjectBinder)

    @pytest.mark.asyncio
    async def test_built_handler_validates(
        self, mock_jwks_validator, federated_provider, mint_assertion, make_request
    ):
        registry = InMemoryIdentityProviderRegistry()
        registry.register(federated_provider, "carbon.super")
        handler = build_jwt_bearer_grant_handler(
            settings=JWTGrantSettings(),
            registry=registry,
            replay_cache=InMemoryReplayCache(),
            jwks_validator=mock_jwks_validator,
            grant_cache=InMemoryAuthorizationGrantCache(),
        )
        # Real clock: exp in 2100, no iat
        assertion = mint_assertion(exp=4_102_444_800, iat=None)

        outcome = await handler.evaluate(make_request(assertion))

        assert outcome.accepted
        assert outcome.provider_name == federated_provider.name


class TestProcessWideHandler:
    def test_handler_and_cache_shared(self):
        with patch("jwt_grant.dependencies.configure_logging"):
            assert get_jwt_bearer_grant_handler() is get_jwt_bearer_grant_handler()

        assert get_jwt_bearer_grant_handler()._replay_cache is get_replay_cache()
