"""In-memory identity provider registry."""

from __future__ import annotations

from dataclasses import replace

from jwt_grant.domain.value_objects import (
    PLACEHOLDER_PROVIDER_NAME,
    RESIDENT_PROVIDER_NAME,
    ProviderRecord,
)
from jwt_grant.ports.exceptions import IdentityProviderRegistryError


class InMemoryIdentityProviderRegistry:
    """Identity provider registry backed by dictionaries.

    Follows the registry convention of answering an unknown provider name
    with a placeholder record named ``default`` instead of None.
    """

    def __init__(self) -> None:
        self._providers: dict[tuple[str, str], ProviderRecord] = {}
        self._residents: dict[str, ProviderRecord] = {}

    def register(self, provider: ProviderRecord, tenant_domain: str) -> None:
        """Register a federated provider under its name within a tenant."""
        self._providers[(tenant_domain, provider.name)] = provider

    def set_resident(self, provider: ProviderRecord, tenant_domain: str) -> None:
        """Set the tenant's resident provider; it is renamed to ``LOCAL``."""
        resident = replace(provider, name=RESIDENT_PROVIDER_NAME)
        self._residents[tenant_domain] = resident
        self._providers[(tenant_domain, RESIDENT_PROVIDER_NAME)] = resident

    async def get_by_name(
        self, name: str, tenant_domain: str
    ) -> ProviderRecord | None:
        provider = self._providers.get((tenant_domain, name))
        if provider is None:
            return ProviderRecord(name=PLACEHOLDER_PROVIDER_NAME)
        return provider

    async def get_resident(self, tenant_domain: str) -> ProviderRecord:
        resident = self._residents.get(tenant_domain)
        if resident is None:
            raise IdentityProviderRegistryError(
                f"No resident identity provider configured for tenant '{tenant_domain}'"
            )
        return resident
