"""
Bounded pool of backend session handles.

Replaces process-wide singleton session managers: a port owns one pool,
configured at construction with the maximum number of concurrent sessions
and how long an idle handle may be kept before it is disposed.
"""

import asyncio
import inspect
import time
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Generic, List, Optional, Tuple, TypeVar, Union

from linguini.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Factory = Callable[[], Union[T, Awaitable[T]]]
Disposer = Callable[[T], Union[None, Awaitable[None]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class SessionPool(Generic[T]):
    """
    Pool of reusable session handles.

    Usage:
        pool = SessionPool(create_client, max_sessions=4, idle_timeout=300)
        async with pool.session() as client:
            await client.chat.completions.create(...)
        await pool.close()
    """

    def __init__(
        self,
        factory: Factory,
        max_sessions: int = 6,
        idle_timeout: float = 300.0,
        disposer: Optional[Disposer] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self._factory = factory
        self._disposer = disposer
        self._clock = clock
        self.max_sessions = max_sessions
        self.idle_timeout = idle_timeout
        self._semaphore = asyncio.Semaphore(max_sessions)
        self._idle: List[Tuple[T, float]] = []
        self._in_use = 0
        self._created = 0
        self._closed = False

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def idle_count(self) -> int:
        return len(self._idle)

    @property
    def created(self) -> int:
        return self._created

    async def acquire(self) -> T:
        """Wait for a free slot and return an idle or freshly created handle."""
        if self._closed:
            raise RuntimeError("Session pool is closed")
        await self._semaphore.acquire()
        try:
            await self._evict_idle()
            if self._idle:
                handle, _ = self._idle.pop()
            else:
                handle = await _maybe_await(self._factory())
                self._created += 1
                logger.debug(f"Created session {self._created} (max {self.max_sessions})")
        except BaseException:
            self._semaphore.release()
            raise
        self._in_use += 1
        return handle

    async def release(self, handle: T) -> None:
        """Return a handle to the idle list."""
        self._in_use -= 1
        if self._closed:
            await self._dispose(handle)
        else:
            self._idle.append((handle, self._clock()))
        self._semaphore.release()

    @asynccontextmanager
    async def session(self):
        handle = await self.acquire()
        try:
            yield handle
        finally:
            await self.release(handle)

    async def close(self) -> None:
        """Dispose every idle handle; handles in use are disposed on release."""
        self._closed = True
        idle, self._idle = self._idle, []
        for handle, _ in idle:
            await self._dispose(handle)

    async def _evict_idle(self) -> None:
        now = self._clock()
        keep = []
        for handle, last_used in self._idle:
            if now - last_used > self.idle_timeout:
                logger.debug("Evicting idle session")
                await self._dispose(handle)
            else:
                keep.append((handle, last_used))
        self._idle = keep

    async def _dispose(self, handle: T) -> None:
        if self._disposer is not None:
            await _maybe_await(self._disposer(handle))
