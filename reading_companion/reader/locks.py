from __future__ import annotations

import asyncio
from typing import Dict


class KeyedLocks:
    """
    Named asyncio locks, one per durable record key. Holding the lock for a
    key around a read-modify-write keeps concurrent writers for the same
    record from interleaving; different keys never contend.
    """

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}

    def for_key(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock
