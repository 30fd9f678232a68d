"""Identity provider registry and user store protocols (ports)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from jwt_grant.domain.value_objects import AuthenticatedUser, ProviderRecord


@runtime_checkable
class IIdentityProviderRegistry(Protocol):
    """Registry of identity providers trusted by each tenant.

    Mirrors the registry convention of answering an unknown name with a
    placeholder record named ``default`` rather than with None.
    """

    async def get_by_name(
        self, name: str, tenant_domain: str
    ) -> ProviderRecord | None:
        """Look up a provider by its registered name.

        Args:
            name: Provider name (the JWT issuer)
            tenant_domain: Tenant to search within

        Returns:
            The provider record, the placeholder record, or None

        Raises:
            IdentityProviderRegistryError: If the registry lookup fails
        """
        ...

    async def get_resident(self, tenant_domain: str) -> ProviderRecord:
        """Return the tenant's resident (self) identity provider.

        Args:
            tenant_domain: Tenant whose resident provider is requested

        Raises:
            IdentityProviderRegistryError: If the registry lookup fails
        """
        ...


@runtime_checkable
class IUserStore(Protocol):
    """Local user store used to bind an assertion subject to a user."""

    async def get_user_by_username(
        self, username: str, tenant_domain: str
    ) -> AuthenticatedUser | None:
        """Resolve a fully qualified username to an authenticated user.

        Args:
            username: Username, optionally qualified as ``STORE/name@tenant``
            tenant_domain: Tenant of the grant request, used when the
                username carries none

        Returns:
            The user, or None when the username cannot be resolved
        """
        ...
