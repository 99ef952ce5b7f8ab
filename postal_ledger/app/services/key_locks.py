"""
Per-key locking for ledger invocations.

Serialises read-modify-write on the same parcel id within this process.
Different keys never contend.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class KeyLockRegistry:

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._waiters: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str):
        """Acquire the lock for `key`, dropping it from the registry once unused."""
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def active_keys(self) -> list:
        return list(self._locks)
