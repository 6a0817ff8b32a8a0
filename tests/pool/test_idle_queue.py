from __future__ import annotations

import asyncio

import pytest

from prime_pool.pool.errors import PoolDisposedError
from prime_pool.pool.idle_queue import IdleWorkerQueue


def test_idle_queue_fifo_order() -> None:
    # FIFO ordering of idle items.
    queue: IdleWorkerQueue[str] = IdleWorkerQueue()
    queue.push("A")
    queue.push("B")
    assert queue.shift_nowait() == "A"
    assert queue.shift_nowait() == "B"
    assert queue.shift_nowait() is None


def test_idle_queue_size_tracks_items() -> None:
    queue: IdleWorkerQueue[str] = IdleWorkerQueue()
    assert queue.size() == 0
    queue.push("A")
    queue.push("B")
    assert queue.size() == 2
    queue.shift_nowait()
    assert queue.size() == 1


def test_idle_queue_shift_returns_available_item_without_waiting() -> None:
    async def scenario() -> str:
        queue: IdleWorkerQueue[str] = IdleWorkerQueue()
        queue.push("A")
        return await queue.shift()

    assert asyncio.run(scenario()) == "A"


def test_idle_queue_waiters_are_served_in_order() -> None:
    # Items pushed later go to the oldest waiter first.
    async def scenario() -> list[tuple[str, str]]:
        queue: IdleWorkerQueue[str] = IdleWorkerQueue()
        served: list[tuple[str, str]] = []

        async def waiter(name: str) -> None:
            item = await queue.shift()
            served.append((name, item))

        tasks = [asyncio.create_task(waiter(name)) for name in ("w1", "w2", "w3")]
        await asyncio.sleep(0)
        assert queue.waiting() == 3
        for item in ("A", "B", "C"):
            queue.push(item)
        await asyncio.gather(*tasks)
        return served

    assert asyncio.run(scenario()) == [("w1", "A"), ("w2", "B"), ("w3", "C")]


def test_idle_queue_cancelled_waiter_is_skipped() -> None:
    async def scenario() -> tuple[str, int]:
        queue: IdleWorkerQueue[str] = IdleWorkerQueue()
        first = asyncio.create_task(queue.shift())
        second = asyncio.create_task(queue.shift())
        await asyncio.sleep(0)
        first.cancel()
        await asyncio.sleep(0)
        queue.push("A")
        return await second, queue.size()

    assert asyncio.run(scenario()) == ("A", 0)


def test_idle_queue_item_handed_to_cancelled_waiter_is_returned() -> None:
    # Cancellation racing a hand-over must not lose the item.
    async def scenario() -> int:
        queue: IdleWorkerQueue[str] = IdleWorkerQueue()
        task = asyncio.create_task(queue.shift())
        await asyncio.sleep(0)
        queue.push("A")
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        return queue.size()

    assert asyncio.run(scenario()) == 1


def test_idle_queue_close_fails_waiters_and_later_shifts() -> None:
    async def scenario() -> None:
        queue: IdleWorkerQueue[str] = IdleWorkerQueue()
        task = asyncio.create_task(queue.shift())
        await asyncio.sleep(0)
        queue.close(PoolDisposedError)
        with pytest.raises(PoolDisposedError):
            await task
        with pytest.raises(PoolDisposedError):
            await queue.shift()
        assert queue.waiting() == 0

    asyncio.run(scenario())


def test_idle_queue_push_after_close_goes_to_hook() -> None:
    rejected: list[str] = []
    queue: IdleWorkerQueue[str] = IdleWorkerQueue(on_closed_push=rejected.append)
    queue.close(PoolDisposedError)
    queue.push("A")
    assert rejected == ["A"]
    assert queue.size() == 0
