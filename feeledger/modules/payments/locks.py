"""In-process exclusive scope per fee account."""

import asyncio
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class AccountLocks:
    """
    One asyncio.Lock per fee account, per event loop.

    Serializes writes to the same account (payment collection, added
    reductions) inside one process; the row lock (SELECT ... FOR UPDATE)
    covers other processes on PostgreSQL.
    Entries are dropped when nobody holds or waits for them.
    """

    def __init__(self) -> None:
        self._by_loop: weakref.WeakKeyDictionary[
            asyncio.AbstractEventLoop, dict[int, tuple[asyncio.Lock, int]]
        ] = weakref.WeakKeyDictionary()

    def _locks(self) -> dict[int, tuple[asyncio.Lock, int]]:
        loop = asyncio.get_running_loop()
        locks = self._by_loop.get(loop)
        if locks is None:
            locks = {}
            self._by_loop[loop] = locks
        return locks

    @asynccontextmanager
    async def hold(self, account_id: int) -> AsyncIterator[None]:
        locks = self._locks()
        lock, users = locks.get(account_id, (None, 0))
        if lock is None:
            lock = asyncio.Lock()
        locks[account_id] = (lock, users + 1)
        try:
            async with lock:
                yield
        finally:
            lock, users = locks[account_id]
            if users <= 1:
                del locks[account_id]
            else:
                locks[account_id] = (lock, users - 1)

    def active(self) -> int:
        """Number of accounts currently held or awaited in this loop."""
        return len(self._locks())


account_locks = AccountLocks()
