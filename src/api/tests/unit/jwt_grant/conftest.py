"""Shared fixtures for JWT bearer grant tests.

Keys and certificates are generated once per session with cryptography;
assertions are minted with python-jose.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable
from unittest.mock import MagicMock, create_autospec

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID
from jose import jwt

from jwt_grant.application.observability import GrantValidationProbe
from jwt_grant.application.resolver import IdentityProviderResolver
from jwt_grant.application.services import (
    GrantValidationPolicy,
    JWTBearerGrantHandler,
)
from jwt_grant.application.signature import SignatureVerifier
from jwt_grant.domain.value_objects import (
    JWT_BEARER_GRANT_TYPE,
    GrantRequest,
    ProviderRecord,
)
from jwt_grant.infrastructure import (
    InMemoryIdentityProviderRegistry,
    InMemoryReplayCache,
)
from jwt_grant.ports import IJwksSignatureValidator

TENANT = "carbon.super"
ISSUER = "https://idp.partner.example"
TOKEN_ENDPOINT_ALIAS = "https://localhost:9443/oauth2/token"
RESIDENT_ENTITY_ID = "https://localhost:9443/oauth2/token/resident"
RESIDENT_TOKEN_URL = "https://localhost:9443/oauth2/token"

# Fixed clock: 2023-11-14T22:13:20Z
NOW_SECONDS = 1_700_000_000
NOW_MILLIS = NOW_SECONDS * 1000
SKEW_SECONDS = 300


def _pem_private_key(key: rsa.RSAPrivateKey | ec.EllipticCurvePrivateKey) -> str:
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


def _self_signed_certificate(key: Any, common_name: str) -> str:
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    not_before = datetime(2023, 1, 1, tzinfo=timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_before + timedelta(days=3650))
        .sign(key, hashes.SHA256())
    )
    return certificate.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def signing_key() -> rsa.RSAPrivateKey:
    """RSA key the trusted provider signs assertions with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def signing_key_pem(signing_key: rsa.RSAPrivateKey) -> str:
    return _pem_private_key(signing_key)


@pytest.fixture(scope="session")
def provider_certificate_pem(signing_key: rsa.RSAPrivateKey) -> str:
    """Self-signed certificate over the trusted provider's key."""
    return _self_signed_certificate(signing_key, "idp.partner.example")


@pytest.fixture(scope="session")
def untrusted_key_pem() -> str:
    """RSA key no registered provider trusts."""
    return _pem_private_key(
        rsa.generate_private_key(public_exponent=65537, key_size=2048)
    )


@pytest.fixture(scope="session")
def ec_certificate_pem() -> str:
    """Self-signed certificate carrying an EC public key."""
    return _self_signed_certificate(
        ec.generate_private_key(ec.SECP256R1()), "ec.partner.example"
    )


@pytest.fixture
def base_claims() -> dict[str, Any]:
    """A claim set that passes every check against the federated provider."""
    return {
        "iss": ISSUER,
        "sub": "alice",
        "aud": TOKEN_ENDPOINT_ALIAS,
        "exp": NOW_SECONDS + 600,
        "iat": NOW_SECONDS,
        "jti": "jti-1",
    }


@pytest.fixture
def mint_assertion(
    signing_key_pem: str, base_claims: dict[str, Any]
) -> Callable[..., str]:
    """Return a factory minting signed assertions.

    Keyword arguments override claims; a value of None removes the claim.
    """

    def _mint(
        key: str | None = None,
        algorithm: str = "RS256",
        headers: dict[str, Any] | None = None,
        **overrides: Any,
    ) -> str:
        claims = {**base_claims, **overrides}
        claims = {name: value for name, value in claims.items() if value is not None}
        return jwt.encode(
            claims,
            key or signing_key_pem,
            algorithm=algorithm,
            headers=headers,
        )

    return _mint


def grant_request(
    assertion: str | None, scope: tuple[str, ...] = (), tenant: str | None = TENANT
) -> GrantRequest:
    """Build a token endpoint request carrying ``assertion``."""
    parameters: dict[str, list[str]] = {"grant_type": [JWT_BEARER_GRANT_TYPE]}
    if assertion is not None:
        parameters["assertion"] = [assertion]
    return GrantRequest(
        tenant_domain=tenant,
        scope=scope,
        request_parameters=parameters,
    )


@pytest.fixture
def make_request() -> Callable[..., GrantRequest]:
    return grant_request


@pytest.fixture
def federated_provider(provider_certificate_pem: str) -> ProviderRecord:
    return ProviderRecord(
        name=ISSUER,
        certificate=provider_certificate_pem,
        alias=TOKEN_ENDPOINT_ALIAS,
    )


@pytest.fixture
def resident_provider(provider_certificate_pem: str) -> ProviderRecord:
    return ProviderRecord(
        name="resident",
        certificate=provider_certificate_pem,
        oidc_entity_id=RESIDENT_ENTITY_ID,
        oauth2_token_url=RESIDENT_TOKEN_URL,
    )


@pytest.fixture
def registry(
    federated_provider: ProviderRecord, resident_provider: ProviderRecord
) -> InMemoryIdentityProviderRegistry:
    registry = InMemoryIdentityProviderRegistry()
    registry.register(federated_provider, TENANT)
    registry.set_resident(resident_provider, TENANT)
    return registry


@pytest.fixture
def replay_cache() -> InMemoryReplayCache:
    return InMemoryReplayCache()


@pytest.fixture
def mock_jwks_validator() -> MagicMock:
    return create_autospec(IJwksSignatureValidator, instance=True)


@pytest.fixture
def mock_probe() -> MagicMock:
    return MagicMock(spec=GrantValidationProbe)


@pytest.fixture
def policy() -> GrantValidationPolicy:
    return GrantValidationPolicy(
        validity_period_minutes=30,
        cache_used_jti=True,
        timestamp_skew_millis=SKEW_SECONDS * 1000,
    )


@pytest.fixture
def clock() -> MagicMock:
    """Clock pinned to NOW_MILLIS; tests may move it with ``return_value``."""
    return MagicMock(return_value=NOW_MILLIS)


@pytest.fixture
def handler(
    policy: GrantValidationPolicy,
    registry: InMemoryIdentityProviderRegistry,
    replay_cache: InMemoryReplayCache,
    mock_jwks_validator: MagicMock,
    mock_probe: MagicMock,
    clock: MagicMock,
) -> JWTBearerGrantHandler:
    """Grant handler over the in-memory registry and replay cache."""
    return JWTBearerGrantHandler(
        policy=policy,
        resolver=IdentityProviderResolver(registry, probe=mock_probe),
        signature_verifier=SignatureVerifier(mock_jwks_validator, probe=mock_probe),
        replay_cache=replay_cache,
        clock=clock,
        probe=mock_probe,
    )
