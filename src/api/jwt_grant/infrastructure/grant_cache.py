"""In-memory attribute cache keyed by access token."""

from __future__ import annotations

from jwt_grant.domain.value_objects import AuthorizationGrantCacheEntry


class InMemoryAuthorizationGrantCache:
    """Holds OIDC attributes of issued access tokens in process memory."""

    def __init__(self) -> None:
        self._entries: dict[str, AuthorizationGrantCacheEntry] = {}

    async def add_by_token(
        self, access_token: str, entry: AuthorizationGrantCacheEntry
    ) -> None:
        self._entries[access_token] = entry

    async def get_by_token(
        self, access_token: str
    ) -> AuthorizationGrantCacheEntry | None:
        return self._entries.get(access_token)
