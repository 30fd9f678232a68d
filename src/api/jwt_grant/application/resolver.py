"""Identity provider resolution for JWT issuers.

Resolves the trust anchor for an issuer within a tenant, guarding against
the registry's placeholder answer for unknown names, and derives the
audience value the provider's assertions must carry.
"""

from __future__ import annotations

from jwt_grant.application.observability import (
    DefaultGrantValidationProbe,
    GrantValidationProbe,
)
from jwt_grant.domain.exceptions import (
    IdentityProviderLookupError,
    MisconfiguredAudienceError,
    UnknownIssuerError,
)
from jwt_grant.domain.value_objects import ProviderRecord
from jwt_grant.ports.exceptions import IdentityProviderRegistryError
from jwt_grant.ports.registry import IIdentityProviderRegistry


class IdentityProviderResolver:
    """Resolves ProviderRecords through the identity provider registry.

    Read-only: records are looked up fresh on every call and never cached here.
    """

    def __init__(
        self,
        registry: IIdentityProviderRegistry,
        probe: GrantValidationProbe | None = None,
    ):
        self._registry = registry
        self._probe = probe or DefaultGrantValidationProbe()

    async def resolve(self, issuer: str, tenant_domain: str) -> ProviderRecord:
        """Resolve the provider trusted for ``issuer`` in ``tenant_domain``.

        When the registry answers with its placeholder record, the resident
        provider stands in only if the issuer equals the entity id the
        resident provider asserts.

        Args:
            issuer: The ``iss`` claim of the assertion
            tenant_domain: Effective tenant of the grant request

        Returns:
            The resolved provider record

        Raises:
            UnknownIssuerError: If no trusted provider exists for the issuer
            IdentityProviderLookupError: If the registry lookup fails
        """
        try:
            provider = await self._registry.get_by_name(issuer, tenant_domain)
        except IdentityProviderRegistryError as e:
            raise IdentityProviderLookupError(
                "Error while getting the Federated Identity Provider "
                f"for issuer '{issuer}' in tenant '{tenant_domain}'"
            ) from e

        if provider is not None and provider.is_placeholder:
            provider = await self._resident_for_issuer(issuer, tenant_domain)

        if provider is None:
            raise UnknownIssuerError(
                f"No Registered IDP found for the JWT with issuer name: {issuer}"
            )

        self._probe.provider_resolved(issuer=issuer, provider_name=provider.name)
        return provider

    async def expected_audience(
        self, provider: ProviderRecord, tenant_domain: str
    ) -> str:
        """Return the audience value the provider's assertions must carry.

        Federated providers use their token endpoint alias. The resident
        provider uses the OIDC token endpoint URL of the tenant's resident
        record, re-read from the registry.

        Raises:
            MisconfiguredAudienceError: If no audience value is configured
        """
        if provider.is_resident:
            resident = provider
            try:
                resident = await self._registry.get_resident(tenant_domain)
            except IdentityProviderRegistryError as e:
                self._probe.resident_provider_lookup_failed(
                    tenant_domain=tenant_domain, error=str(e)
                )
            audience = resident.oauth2_token_url
        else:
            audience = provider.alias

        if not audience:
            raise MisconfiguredAudienceError(
                "Token Endpoint alias of the local Identity Provider has not been "
                f"configured for {provider.name}"
            )
        return audience

    async def _resident_for_issuer(
        self, issuer: str, tenant_domain: str
    ) -> ProviderRecord | None:
        try:
            resident = await self._registry.get_resident(tenant_domain)
        except IdentityProviderRegistryError as e:
            raise IdentityProviderLookupError(
                f"Error while getting Resident Identity Provider of '{tenant_domain}' tenant."
            ) from e

        if resident.oidc_entity_id and resident.oidc_entity_id == issuer:
            return resident
        return None
