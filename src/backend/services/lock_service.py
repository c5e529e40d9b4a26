"""
Keyed Lock Service

Serializes check-then-write sequences per key (participant fingerprint,
network hash) inside this process, so two concurrent submissions sharing a
key cannot both pass the admission checks before either commits.

Unrelated keys never contend. On PostgreSQL a transaction-scoped advisory
lock is taken as well, which also covers writers outside this process.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncGenerator

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger(__name__)


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    refs: int = 0


class KeyedLockService:
    """
    Reference-counted asyncio locks indexed by string key.

    Usage:
        async with lock_service.acquire("fp:abc", "net:123"):
            # checks + write for these keys run exclusively
            pass

    Keys are acquired in sorted order, so callers locking overlapping key
    sets cannot deadlock. Entries are dropped once nobody holds or waits
    for them.
    """

    def __init__(self) -> None:
        self._locks: dict[str, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def is_locked(self, key: str) -> bool:
        entry = self._locks.get(key)
        return entry is not None and entry.lock.locked()

    def _reference(self, key: str) -> _LockEntry:
        entry = self._locks.get(key)
        if entry is None:
            entry = _LockEntry()
            self._locks[key] = entry
        entry.refs += 1
        return entry

    def _dereference(self, key: str, entry: _LockEntry) -> None:
        entry.refs -= 1
        if entry.refs == 0 and self._locks.get(key) is entry:
            del self._locks[key]

    @asynccontextmanager
    async def acquire(self, *keys: str) -> AsyncGenerator[None, None]:
        """Hold the locks for all given keys for the duration of the block."""
        referenced: list[tuple[str, _LockEntry]] = []
        acquired: list[_LockEntry] = []
        try:
            for key in sorted(set(keys)):
                entry = self._reference(key)
                referenced.append((key, entry))
                await entry.lock.acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry.lock.release()
            for key, entry in reversed(referenced):
                self._dereference(key, entry)


async def acquire_advisory_xact_lock(db: AsyncSession, key: str) -> bool:
    """
    Take a PostgreSQL transaction-scoped advisory lock for ``key``.

    Released automatically on commit or rollback. Other dialects have no
    equivalent and rely on the in-process lock only.

    Returns:
        True if an advisory lock was taken
    """
    if db.get_bind().dialect.name != "postgresql":
        return False

    await db.execute(text("SELECT pg_advisory_xact_lock(hashtext(:key))"), {"key": key})
    logger.debug("advisory_lock_acquired", key=key[:16])
    return True


# Global instance shared by every request of this process
vote_lock_service = KeyedLockService()


def get_lock_service() -> KeyedLockService:
    """Dependency for getting the keyed lock service."""
    return vote_lock_service
