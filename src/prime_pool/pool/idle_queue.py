from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class IdleWorkerQueue(Generic[T]):
    """FIFO queue of idle items with an explicit FIFO list of suspended acquirers.

    Must only be used from the event loop thread that owns the pool.
    An item pushed while acquirers are waiting goes straight to the oldest
    one, so waiters are served in the order they started waiting.
    """

    def __init__(self, *, on_closed_push: Callable[[T], None] | None = None) -> None:
        # on_closed_push receives items pushed after close(), e.g. to terminate a returned worker.
        self._on_closed_push = on_closed_push
        self._items: deque[T] = deque()
        self._waiters: deque[asyncio.Future[T]] = deque()
        self._closed: Callable[[], BaseException] | None = None

    def push(self, item: T) -> None:
        if self._closed is not None and self._on_closed_push is not None:
            self._on_closed_push(item)
            return
        while self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                # Cancelled or timed out before an item arrived.
                continue
            waiter.set_result(item)
            return
        self._items.append(item)

    async def shift(self) -> T:
        if self._closed is not None:
            raise self._closed()
        if self._items and not self._waiters:
            return self._items.popleft()

        waiter: asyncio.Future[T] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Item was handed over in the same tick the caller was cancelled; give it back.
                self.push(waiter.result())
            else:
                self._discard_waiter(waiter)
            raise

    def shift_nowait(self) -> T | None:
        if not self._items:
            return None
        return self._items.popleft()

    def close(self, error_factory: Callable[[], BaseException]) -> None:
        # Fail every current waiter and make later shift() calls raise a fresh error from the factory.
        self._closed = error_factory
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_exception(error_factory())

    def size(self) -> int:
        return len(self._items)

    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    def _discard_waiter(self, waiter: asyncio.Future[T]) -> None:
        try:
            self._waiters.remove(waiter)
        except ValueError:
            return
