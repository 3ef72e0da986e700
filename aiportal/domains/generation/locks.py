"""Per-owner, per-service single-flight locks.

Serializes the read-check-generate-write sequence so two concurrent
requests from one owner cannot both pass the quota check before either is
recorded. Process-local: replicas behind a load balancer each keep their own.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Hashable


class OwnerLocks:
    """Lazily created asyncio locks, dropped once nobody holds or waits on them."""

    def __init__(self) -> None:
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._users: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, *key_parts: Hashable) -> AsyncIterator[None]:
        """Hold the lock for ``key_parts`` for the duration of the block."""
        key = tuple(key_parts)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_held(self, *key_parts: Hashable) -> bool:
        lock = self._locks.get(tuple(key_parts))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
