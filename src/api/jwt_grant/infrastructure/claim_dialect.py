"""Mapping-based claim dialect conversion."""

from __future__ import annotations

from typing import Mapping, Sequence

from jwt_grant.domain.value_objects import ClaimMapping
from jwt_grant.ports.exceptions import ClaimDialectConversionError

LOCAL_CLAIM_DIALECT_URI = "http://wso2.org/claims"

DEFAULT_OIDC_CLAIM_MAPPINGS: dict[str, str] = {
    f"{LOCAL_CLAIM_DIALECT_URI}/username": "preferred_username",
    f"{LOCAL_CLAIM_DIALECT_URI}/emailaddress": "email",
    f"{LOCAL_CLAIM_DIALECT_URI}/givenname": "given_name",
    f"{LOCAL_CLAIM_DIALECT_URI}/lastname": "family_name",
    f"{LOCAL_CLAIM_DIALECT_URI}/fullname": "name",
    f"{LOCAL_CLAIM_DIALECT_URI}/telephone": "phone_number",
    f"{LOCAL_CLAIM_DIALECT_URI}/country": "country",
    f"{LOCAL_CLAIM_DIALECT_URI}/role": "groups",
}


class MappingClaimDialectConverter:
    """Converts claims with static local-to-OIDC mappings.

    Local claims without an OIDC mapping are dropped from the OIDC view.
    """

    def __init__(self, oidc_claim_mappings: Mapping[str, str] | None = None):
        self._oidc_claim_mappings = dict(
            DEFAULT_OIDC_CLAIM_MAPPINGS
            if oidc_claim_mappings is None
            else oidc_claim_mappings
        )

    def is_in_local_dialect(self, attributes: Mapping[str, str]) -> bool:
        """True when every claim name is a local claim URI."""
        return bool(attributes) and all(
            name.startswith(LOCAL_CLAIM_DIALECT_URI) for name in attributes
        )

    def convert_federated_to_local(
        self,
        attributes: Mapping[str, str],
        claim_mappings: Sequence[ClaimMapping],
        tenant_domain: str,
    ) -> dict[str, str]:
        local_claims: dict[str, str] = {}
        for mapping in claim_mappings:
            if mapping.remote_claim in attributes:
                local_claims[mapping.local_claim] = attributes[mapping.remote_claim]
        return local_claims

    async def convert_to_oidc_dialect(
        self, local_claims: Mapping[str, str], tenant_domain: str
    ) -> dict[str, str]:
        oidc_claims: dict[str, str] = {}
        for name, value in local_claims.items():
            if not name.startswith(LOCAL_CLAIM_DIALECT_URI):
                raise ClaimDialectConversionError(
                    f"Claim '{name}' is not in the local dialect"
                )
            oidc_name = self._oidc_claim_mappings.get(name)
            if oidc_name is not None:
                oidc_claims[oidc_name] = value
        return oidc_claims
