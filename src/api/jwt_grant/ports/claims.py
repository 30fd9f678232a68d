"""Claim dialect conversion and attribute cache protocols (ports)."""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence, runtime_checkable

from jwt_grant.domain.value_objects import (
    AuthorizationGrantCacheEntry,
    ClaimMapping,
)


@runtime_checkable
class IClaimDialectConverter(Protocol):
    """Converts claims between federated, local and OIDC dialects."""

    def is_in_local_dialect(self, attributes: Mapping[str, str]) -> bool:
        """Return True if the attributes already use local claim URIs."""
        ...

    def convert_federated_to_local(
        self,
        attributes: Mapping[str, str],
        claim_mappings: Sequence[ClaimMapping],
        tenant_domain: str,
    ) -> dict[str, str]:
        """Translate federated claims to local claims via provider mappings."""
        ...

    async def convert_to_oidc_dialect(
        self, local_claims: Mapping[str, str], tenant_domain: str
    ) -> dict[str, str]:
        """Translate local claims to OIDC claim names.

        Raises:
            ClaimDialectConversionError: If the conversion fails
        """
        ...


@runtime_checkable
class IAuthorizationGrantCache(Protocol):
    """Attribute cache keyed by issued access token."""

    async def add_by_token(
        self, access_token: str, entry: AuthorizationGrantCacheEntry
    ) -> None:
        """Store the attributes for an access token."""
        ...

    async def get_by_token(
        self, access_token: str
    ) -> AuthorizationGrantCacheEntry | None:
        """Return the attributes stored for an access token, if any."""
        ...
