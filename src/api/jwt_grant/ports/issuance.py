"""Access token issuance protocol (port)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from jwt_grant.domain.value_objects import (
    AuthenticatedUser,
    GrantRequest,
    IssuedAccessToken,
)


@runtime_checkable
class IAccessTokenIssuer(Protocol):
    """Generic OAuth2 token issuance pipeline fed by the grant handler."""

    async def issue(
        self,
        request: GrantRequest,
        authorized_user: AuthenticatedUser,
        scope: tuple[str, ...],
    ) -> IssuedAccessToken:
        """Issue an access token for an accepted grant."""
        ...
