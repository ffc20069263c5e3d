"""
Keyed locking service for the consistency engine.

Seat assignment and balance mutation are critical sections keyed by
(library, seat) and (library, student). Operations on different keys run
concurrently; operations sharing a key are serialized.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, Hashable, Tuple

SEAT = "seat"
STUDENT = "student"


def seat_key(library_id: int, seat_id: int) -> Tuple[str, int, int]:
    return (SEAT, library_id, seat_id)


def student_key(library_id: int, student_id: int) -> Tuple[str, int, int]:
    return (STUDENT, library_id, student_id)


class KeyedLockRegistry:
    """
    Registry of asyncio locks created on demand per key.

    Keys are always acquired in sorted order, which puts every seat key
    before every student key and rules out lock-order deadlocks between
    multi-key operations. A lock is discarded once nobody holds or awaits it.
    """

    def __init__(self):
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._refs: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, *keys: Hashable):
        """
        Acquire every key for the duration of the block.

        Args:
            keys: Lock keys (duplicates are ignored)
        """
        ordered = sorted(set(keys))
        touched = []
        acquired = []
        try:
            for key in ordered:
                lock = self._locks.setdefault(key, asyncio.Lock())
                self._refs[key] = self._refs.get(key, 0) + 1
                touched.append(key)
                await lock.acquire()
                acquired.append(key)
            yield
        finally:
            for key in reversed(acquired):
                self._locks[key].release()
            for key in touched:
                self._refs[key] -= 1
                if self._refs[key] == 0:
                    del self._refs[key]
                    del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        """Check if a key is currently held."""
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def holders(self, key: Hashable) -> int:
        """Number of tasks holding or waiting for a key."""
        return self._refs.get(key, 0)

    def __len__(self) -> int:
        return len(self._locks)


# Process-wide registry shared by all engine services
engine_locks = KeyedLockRegistry()
