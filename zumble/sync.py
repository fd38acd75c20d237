"""A fair asyncio reader-writer lock whose acquisition times out."""

from __future__ import annotations

import asyncio
from collections import deque
from contextlib import asynccontextmanager, suppress
from typing import AsyncIterator, Generic, TypeVar

from .errors import MumbleError

T = TypeVar("T")

DEFAULT_TIMEOUT = 0.25


class LockTimeout(MumbleError, TimeoutError):
    """A lock could not be acquired before its timeout."""

    mode = "lock"

    def __init__(self, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out while waiting for `{self.mode}` lock after {timeout_ms} ms.")


class ReadLockTimeout(LockTimeout):
    """Timed out while waiting for shared access."""

    mode = "read"


class WriteLockTimeout(LockTimeout):
    """Timed out while waiting for exclusive access."""

    mode = "write"


class RwLock(Generic[T]):
    """Guards a value; many readers or one writer, granted in arrival order."""

    def __init__(self, value: T, timeout: float | None = DEFAULT_TIMEOUT) -> None:
        self._value = value
        self.timeout = timeout
        self._readers = 0
        self._writer = False
        self._waiters: deque[tuple[bool, asyncio.Future[None]]] = deque()

    @property
    def _timeout_ms(self) -> int:
        return 0 if self.timeout is None else round(self.timeout * 1000)

    def _can_grant(self, writer: bool) -> bool:
        if writer:
            return not self._writer and self._readers == 0
        return not self._writer

    def _grant(self, writer: bool) -> None:
        if writer:
            self._writer = True
        else:
            self._readers += 1

    def _release(self, writer: bool) -> None:
        if writer:
            self._writer = False
        else:
            self._readers -= 1
        self._wake()

    def _wake(self) -> None:
        while self._waiters:
            writer, future = self._waiters[0]
            if future.done():
                self._waiters.popleft()
                continue
            if not self._can_grant(writer):
                break
            self._waiters.popleft()
            self._grant(writer)
            future.set_result(None)

    async def _acquire(self, writer: bool) -> None:
        if not self._waiters and self._can_grant(writer):
            self._grant(writer)
            return

        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (writer, future)
        self._waiters.append(entry)
        try:
            await asyncio.wait_for(future, self.timeout)
        except BaseException:
            if future.done() and not future.cancelled():
                self._release(writer)
            else:
                future.cancel()
                with suppress(ValueError):
                    self._waiters.remove(entry)
                self._wake()
            raise

    @asynccontextmanager
    async def read(self) -> AsyncIterator[T]:
        """Hold shared access to the value for the duration of the block."""
        try:
            await self._acquire(False)
        except asyncio.TimeoutError:
            raise ReadLockTimeout(self._timeout_ms) from None
        try:
            yield self._value
        finally:
            self._release(False)

    @asynccontextmanager
    async def write(self) -> AsyncIterator[T]:
        """Hold exclusive access to the value for the duration of the block."""
        try:
            await self._acquire(True)
        except asyncio.TimeoutError:
            raise WriteLockTimeout(self._timeout_ms) from None
        try:
            yield self._value
        finally:
            self._release(True)