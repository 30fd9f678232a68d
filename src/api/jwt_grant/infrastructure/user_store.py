"""Username-based user store adapter."""

from __future__ import annotations

from jwt_grant.domain.value_objects import AuthenticatedUser

PRIMARY_USER_STORE_DOMAIN = "PRIMARY"


class UsernameUserStore:
    """Builds users from fully qualified usernames of the form ``STORE/name@tenant``.

    The user store domain defaults to ``PRIMARY`` and the tenant to the
    tenant of the grant request. No directory is consulted.
    """

    async def get_user_by_username(
        self, username: str, tenant_domain: str
    ) -> AuthenticatedUser | None:
        user_store_domain = PRIMARY_USER_STORE_DOMAIN
        name = username
        if "/" in name:
            user_store_domain, name = name.split("/", 1)
            user_store_domain = user_store_domain.upper() or PRIMARY_USER_STORE_DOMAIN

        user_tenant = tenant_domain
        if "@" in name:
            local_part, _, domain = name.rpartition("@")
            if local_part and domain:
                name, user_tenant = local_part, domain

        if not name:
            return None

        return AuthenticatedUser(
            subject_identifier=username,
            username=name,
            tenant_domain=user_tenant,
            user_store_domain=user_store_domain,
        )
