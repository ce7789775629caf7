#!/usr/bin/env python3
"""Concurrency helpers for CMS synchronization.

This module provides:
    - KeyedLock: serializes check-then-act sequences per key
    - gather_with_errors: run coroutines concurrently, split results/errors

The CMS has no atomic "upsert by external id" operation, so the
find-then-create-or-update sequence is guarded per (entity type, source id).

Example:
    locks = KeyedLock()
    async with locks.hold(("product", "prod_123")):
        entry = await find(...)
        if entry is None:
            await create(...)
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Hashable, Optional

logger = logging.getLogger(__name__)


# ============================================
# Per-key locking
# ============================================

class KeyedLock:
    """A table of asyncio locks, one per key, released when unused.

    Locks are created on first use and removed once no coroutine holds or
    waits for them, so the table stays bounded by the number of keys in
    flight rather than the number of keys ever seen.
    """

    def __init__(self):
        self._locks: dict[Hashable, asyncio.Lock] = {}
        self._waiters: dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] = self._waiters.get(key, 0) + 1

        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def is_locked(self, key: Hashable) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


# ============================================
# Concurrent execution
# ============================================

async def gather_with_errors(
    *coros_or_futures,
    max_concurrent: Optional[int] = None,
) -> tuple[list[Any], list[Exception]]:
    """Execute coroutines concurrently, separating results from errors.

    Unlike asyncio.gather(return_exceptions=True), this returns
    results and errors in separate lists for easier handling.

    Args:
        *coros_or_futures: Coroutines or futures to execute
        max_concurrent: Optional limit on concurrent execution

    Returns:
        Tuple of (successful_results, exceptions)
    """
    if max_concurrent:
        semaphore = asyncio.Semaphore(max_concurrent)

        async def bounded(coro):
            async with semaphore:
                return await coro

        coros_or_futures = tuple(bounded(c) for c in coros_or_futures)

    outcomes = await asyncio.gather(*coros_or_futures, return_exceptions=True)

    results = []
    errors = []
    for outcome in outcomes:
        if isinstance(outcome, Exception):
            errors.append(outcome)
        else:
            results.append(outcome)

    return results, errors
