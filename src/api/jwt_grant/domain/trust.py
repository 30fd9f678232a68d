"""Trust material selection for signature verification.

Verification runs against exactly one kind of trust material per call:
the provider's static certificate, or its published JWKS when JWKS
validation is enabled and the provider opts in with an endpoint.
"""

from __future__ import annotations

from dataclasses import dataclass

from jwt_grant.domain.value_objects import ProviderRecord

# Signature algorithms verifiable with an RSA public key
RSA_SIGNATURE_ALGORITHMS = frozenset({"RS256", "RS384", "RS512"})


@dataclass(frozen=True)
class CertificateTrust:
    """Verify against the provider's configured X.509 certificate."""

    provider: ProviderRecord


@dataclass(frozen=True)
class JwksTrust:
    """Verify against keys published at the provider's JWKS endpoint."""

    provider: ProviderRecord
    jwks_uri: str


TrustMaterial = CertificateTrust | JwksTrust


def select_trust(provider: ProviderRecord, jwks_validation_enabled: bool) -> TrustMaterial:
    """Pick the trust material for a provider.

    Args:
        provider: Resolved identity provider.
        jwks_validation_enabled: Global JWKS validation toggle.

    Returns:
        JwksTrust when the toggle is on and the provider has a JWKS
        endpoint, CertificateTrust otherwise.
    """
    if jwks_validation_enabled and provider.jwks_uri:
        return JwksTrust(provider=provider, jwks_uri=provider.jwks_uri)
    return CertificateTrust(provider=provider)
