"""In-process replay cache for JWT identifiers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from jwt_grant.domain.value_objects import ReplayCacheEntry


class InMemoryReplayCache:
    """Replay cache held in process memory.

    Entries are overwritten, never appended or deleted. Access to one jti is
    serialized with a per-key ``asyncio.Lock``; locks are dropped as soon as
    nobody holds or awaits them.
    """

    def __init__(self) -> None:
        self._entries: dict[str, ReplayCacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._entries)

    @asynccontextmanager
    async def lock(self, jwt_id: str) -> AsyncIterator[None]:
        """Hold the lock of one jti for the duration of the block."""
        key_lock = self._locks.get(jwt_id)
        if key_lock is None:
            key_lock = self._locks[jwt_id] = asyncio.Lock()
        self._lock_users[jwt_id] = self._lock_users.get(jwt_id, 0) + 1
        try:
            async with key_lock:
                yield
        finally:
            self._lock_users[jwt_id] -= 1
            if self._lock_users[jwt_id] == 0:
                del self._lock_users[jwt_id]
                del self._locks[jwt_id]

    async def lookup(self, jwt_id: str) -> ReplayCacheEntry | None:
        return self._entries.get(jwt_id)

    async def upsert(self, entry: ReplayCacheEntry) -> None:
        self._entries[entry.jwt_id] = entry
