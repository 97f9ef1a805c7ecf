"""In-process write locks keyed by file path.

Each ticket file gets one ``asyncio.Lock`` per event loop. ``asyncio.Lock``
wakes waiters in the order they arrived, so mutations against one file run
one at a time and in call order. Nothing here coordinates separate
processes.
"""

from __future__ import annotations

import asyncio
import os
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Union


class FileLockRegistry:
    """Hands out the write lock for a file path.

    Locks are bound to the loop that first uses them, so the table is kept
    per running loop (a CLI run creates a fresh loop for every command).
    """

    def __init__(self):
        self._locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[str, asyncio.Lock]]" = (
            weakref.WeakKeyDictionary()
        )

    @staticmethod
    def _key(path: Union[str, Path]) -> str:
        return os.path.normcase(os.path.abspath(os.fspath(path)))

    def get(self, path: Union[str, Path]) -> asyncio.Lock:
        """Return the lock for ``path`` on the running loop."""
        loop = asyncio.get_running_loop()
        per_loop = self._locks.setdefault(loop, {})
        key = self._key(path)
        lock = per_loop.get(key)
        if lock is None:
            lock = asyncio.Lock()
            per_loop[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, path: Union[str, Path]) -> AsyncIterator[None]:
        """Hold the write lock for ``path``; released even if the body raises."""
        async with self.get(path):
            yield


# Shared by every repository in the process so two instances on the same
# file still serialize their writes.
default_registry = FileLockRegistry()
