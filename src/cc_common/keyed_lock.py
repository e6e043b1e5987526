"""Per-key asyncio locks.

Mutations on one account or one listing run one at a time; distinct keys
proceed concurrently. Multi-key acquisition is always in sorted order so two
callers locking the same pair cannot deadlock.

A key's lock exists only while some caller holds or waits on it, so the
registry stays as small as the set of keys currently in use.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack, asynccontextmanager


class KeyedLocks:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        # key -> callers holding or waiting on its lock
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def _hold_one(self, key: str) -> AsyncIterator[None]:
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

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for key in sorted(set(keys)):
                await stack.enter_async_context(self._hold_one(key))
            yield


def account_lock_key(account_key: str) -> str:
    return f"account:{account_key}"


def listing_lock_key(listing_id: str) -> str:
    return f"listing:{listing_id}"
