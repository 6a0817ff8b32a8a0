from __future__ import annotations

import asyncio
import operator
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from prime_pool.config.models import LoggingConfig, PoolConfig
from prime_pool.observability.logging import close_log_sink, emit_log, lifecycle_log_level, resolve_log_sink
from prime_pool.pool.errors import (
    AcquireTimeoutError,
    PoolDisposedError,
    PoolError,
    WorkerFaultError,
)
from prime_pool.pool.idle_queue import IdleWorkerQueue
from prime_pool.pool.process_worker import ProcessWorkerChannel
from prime_pool.ports.worker_channel import WorkerChannel
from prime_pool.primes.table import generate_primes

WorkerState = Literal["idle", "busy", "terminated"]
ChannelFactory = Callable[[str], WorkerChannel]


@dataclass(slots=True)
class _WorkerSlot:
    index: int
    generation: int
    channel: WorkerChannel
    state: WorkerState = "idle"

    @property
    def worker_id(self) -> str:
        return self.channel.worker_id


@dataclass(frozen=True, slots=True)
class PoolSnapshot:
    # idle + busy + terminated always equals size.
    size: int
    idle: int
    busy: int
    terminated: int
    waiting: int
    faults: int
    disposing: bool


class PrimeTestPool:
    """Fixed-size pool of primality workers behind an async test() call.

    Callers suspend until a worker is idle and are served in the order they
    started waiting. dispose() stops new dispatches, terminates idle workers
    immediately and lets busy workers finish their request before they are
    terminated. A faulted worker is terminated and replaced in its slot, so
    capacity is restored; the ``faults`` counter keeps the loss visible. If
    replacement fails and no live worker is left, waiting and later callers
    fail with PoolError instead of suspending forever.

    Termination is signalled synchronously and reaped in background tasks,
    so a worker that is slow to exit never blocks the loop; wait_closed()
    resolves once every reap has finished.

    All bookkeeping runs on the event loop that calls test(); the pool is
    not thread-safe, and dispose() must be called from that loop.
    """

    def __init__(
        self,
        size: int,
        *,
        channel_factory: ChannelFactory,
        acquire_timeout_seconds: float | None = None,
        log_sink: object | None = None,
        log_level: str = "info",
        max_events: int = 256,
    ) -> None:
        if not isinstance(size, int) or size < 1:
            raise ValueError("size must be an integer >= 1")
        if acquire_timeout_seconds is not None and acquire_timeout_seconds <= 0:
            raise ValueError("acquire_timeout_seconds must be > 0 when set")
        self._size = size
        self._channel_factory = channel_factory
        self._acquire_timeout_seconds = acquire_timeout_seconds
        self._log_sink = log_sink
        self._log_level = log_level
        self._owns_log_sink = False
        self._max_events = max(16, int(max_events))
        self._events: list[dict[str, object]] = []
        self._disposing = False
        self._faults = 0
        self._reaping = 0
        self._reapers: set[asyncio.Task[None]] = set()
        self._all_terminated = asyncio.Event()
        self._queue: IdleWorkerQueue[_WorkerSlot] = IdleWorkerQueue(on_closed_push=self._terminate_slot)
        self._slots: list[_WorkerSlot] = []
        for index in range(size):
            slot = self._spawn_slot(index, generation=1)
            self._slots.append(slot)
            self._queue.push(slot)

    @classmethod
    def from_config(cls, config: PoolConfig, *, logging_config: LoggingConfig | None = None) -> PrimeTestPool:
        # Process-backed pool; the small-prime table is built once here and copied to every worker.
        small_primes = generate_primes(config.prime_table_bound)
        logging_settings = (logging_config or LoggingConfig()).as_settings()
        log_level = lifecycle_log_level(logging_settings)

        def _factory(worker_id: str) -> WorkerChannel:
            return ProcessWorkerChannel(
                worker_id,
                small_primes=small_primes,
                fermat_rounds=config.fermat_rounds,
                fermat_max_base=config.fermat_max_base,
                start_method=config.start_method,
                stop_timeout_seconds=config.stop_timeout_seconds,
                logging_settings=logging_settings,
            )

        pool = cls(
            config.size,
            channel_factory=_factory,
            acquire_timeout_seconds=config.acquire_timeout_seconds,
            log_sink=resolve_log_sink(logging_settings) if log_level else None,
            log_level=log_level or "info",
        )
        pool._owns_log_sink = True
        return pool

    @property
    def size(self) -> int:
        return self._size

    @property
    def disposing(self) -> bool:
        return self._disposing

    async def test(self, candidate: int, *, timeout: float | None = None) -> bool:
        candidate = operator.index(candidate)
        if self._disposing:
            raise PoolDisposedError()

        slot = await self._acquire(timeout)
        if self._disposing:
            # Handed over in the same tick dispose() ran; the request never started.
            self._terminate_slot(slot)
            raise PoolDisposedError()

        slot.state = "busy"
        try:
            verdict = await slot.channel.request(candidate)
        except asyncio.CancelledError:
            # The reply is still in flight on this channel, so the worker cannot be reused.
            self._retire(slot, kind="worker_abandoned", force=True)
            raise
        except WorkerFaultError as exc:
            self._faults += 1
            self._retire(slot, kind="worker_faulted", error=str(exc), force=True)
            raise
        except Exception as exc:
            self._faults += 1
            self._retire(slot, kind="worker_faulted", error=f"{type(exc).__name__}: {exc}", force=True)
            raise WorkerFaultError(slot.worker_id, f"{type(exc).__name__}: {exc}") from exc

        self._release(slot)
        return verdict

    def dispose(self) -> None:
        if self._disposing:
            return
        self._disposing = True
        snapshot = self.snapshot()
        self._emit_event(
            kind="pool_disposing",
            idle=snapshot.idle,
            busy=snapshot.busy,
            waiting=snapshot.waiting,
        )
        self._queue.close(PoolDisposedError)
        while (slot := self._queue.shift_nowait()) is not None:
            self._terminate_slot(slot)
        self._check_all_terminated()

    async def wait_closed(self) -> None:
        # Resolves once every worker has been terminated after dispose().
        if not self._disposing:
            raise PoolError("wait_closed() requires dispose() to be called first")
        await self._all_terminated.wait()

    async def __aenter__(self) -> PrimeTestPool:
        return self

    async def __aexit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.dispose()
        await self.wait_closed()

    def snapshot(self) -> PoolSnapshot:
        states = [slot.state for slot in self._slots]
        return PoolSnapshot(
            size=self._size,
            idle=states.count("idle"),
            busy=states.count("busy"),
            terminated=states.count("terminated"),
            waiting=self._queue.waiting(),
            faults=self._faults,
            disposing=self._disposing,
        )

    def worker_ids(self) -> list[str]:
        return [slot.worker_id for slot in self._slots]

    def lifecycle_events(self) -> list[dict[str, object]]:
        return [dict(event) for event in self._events]

    async def _acquire(self, timeout: float | None) -> _WorkerSlot:
        effective = timeout if timeout is not None else self._acquire_timeout_seconds
        if effective is None:
            return await self._queue.shift()
        try:
            async with asyncio.timeout(effective):
                return await self._queue.shift()
        except TimeoutError:
            raise AcquireTimeoutError(f"no idle worker within {effective}s") from None

    def _release(self, slot: _WorkerSlot) -> None:
        if self._disposing:
            self._terminate_slot(slot)
            return
        slot.state = "idle"
        self._emit_event(kind="worker_released", worker_id=slot.worker_id)
        self._queue.push(slot)

    def _retire(self, slot: _WorkerSlot, *, kind: str, error: str | None = None, force: bool = False) -> None:
        fields: dict[str, object] = {"worker_id": slot.worker_id}
        if error is not None:
            fields["error"] = error
        self._emit_event(kind=kind, **fields)
        self._terminate_slot(slot, force=force)
        if not self._disposing:
            self._replace(slot)

    def _replace(self, slot: _WorkerSlot) -> None:
        try:
            replacement = self._spawn_slot(slot.index, generation=slot.generation + 1)
        except Exception as exc:
            # The slot stays terminated; capacity shrinks by one and the event records why.
            self._emit_event(
                kind="worker_replace_failed",
                slot=slot.index,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            if all(s.state == "terminated" for s in self._slots):
                self._emit_event(kind="pool_exhausted")
                self._queue.close(lambda: PoolError("no workers available"))
            return
        self._slots[slot.index] = replacement
        self._emit_event(
            kind="worker_replaced",
            worker_id=replacement.worker_id,
            replaced=slot.worker_id,
        )
        self._queue.push(replacement)

    def _spawn_slot(self, index: int, *, generation: int) -> _WorkerSlot:
        worker_id = f"worker#{index + 1}" if generation == 1 else f"worker#{index + 1}.{generation}"
        channel = self._channel_factory(worker_id)
        self._emit_event(kind="worker_spawned", worker_id=worker_id)
        return _WorkerSlot(index=index, generation=generation, channel=channel)

    def _terminate_slot(self, slot: _WorkerSlot, *, force: bool = False) -> None:
        # Signals now, reaps in the background; the slot never returns to the queue.
        if slot.state == "terminated":
            return
        slot.state = "terminated"
        try:
            slot.channel.terminate(force=force)
        except Exception as exc:
            self._emit_event(
                kind="worker_terminate_failed",
                worker_id=slot.worker_id,
                error=f"{type(exc).__name__}: {exc}",
            )
        self._reaping += 1
        task = asyncio.get_running_loop().create_task(self._reap(slot))
        self._reapers.add(task)
        task.add_done_callback(self._reapers.discard)

    async def _reap(self, slot: _WorkerSlot) -> None:
        fields: dict[str, object] = {"worker_id": slot.worker_id}
        try:
            await slot.channel.wait_terminated()
        except Exception as exc:
            fields["error"] = f"{type(exc).__name__}: {exc}"
        finally:
            self._reaping -= 1
        self._emit_event(kind="worker_terminated", **fields)
        self._check_all_terminated()

    def _check_all_terminated(self) -> None:
        if not self._disposing or self._all_terminated.is_set() or self._reaping:
            return
        if all(slot.state == "terminated" for slot in self._slots):
            self._all_terminated.set()
            if self._owns_log_sink:
                close_log_sink(self._log_sink)
                self._log_sink = None

    def _emit_event(self, *, kind: str, **fields: object) -> None:
        event = {
            "kind": kind,
            "ts_epoch_ms": int(time.time() * 1000),
            **fields,
        }
        self._events.append(event)
        if len(self._events) > self._max_events:
            self._events = self._events[-self._max_events :]
        emit_log(self._log_sink, level=self._log_level, message=f"pool.{kind}", fields=event)
