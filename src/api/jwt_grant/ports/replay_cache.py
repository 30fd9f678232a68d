"""Replay cache protocol (port)."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from jwt_grant.domain.value_objects import ReplayCacheEntry


@runtime_checkable
class IReplayCache(Protocol):
    """Process-wide store of the last accepted token per jti.

    Callers hold ``lock(jwt_id)`` around their lookup-then-upsert sequence
    so that, for a given jti, at most one of several racing validations
    observes a miss (or an expired predecessor) and proceeds.
    """

    def lock(self, jwt_id: str) -> AbstractAsyncContextManager[None]:
        """Return a context manager serializing access to one jti."""
        ...

    async def lookup(self, jwt_id: str) -> ReplayCacheEntry | None:
        """Return the entry stored for a jti, or None on a miss."""
        ...

    async def upsert(self, entry: ReplayCacheEntry) -> None:
        """Store an entry, overwriting any previous one for the same jti."""
        ...
