from __future__ import annotations

import asyncio
import multiprocessing as mp
import os
import threading
from multiprocessing.connection import Connection

from prime_pool.observability.logging import (
    close_log_sink,
    emit_log,
    lifecycle_log_level,
    resolve_log_sink,
)
from prime_pool.pool.errors import WorkerFaultError
from prime_pool.ports.worker_channel import WorkerChannel
from prime_pool.primes.filter import DEFAULT_FERMAT_MAX_BASE, PrimalityFilter


class ProcessWorkerChannel(WorkerChannel):
    """Worker backed by a dedicated child process and a duplex pipe.

    The child builds its PrimalityFilter once from the table handed over at
    spawn time, then answers one ``{"kind": "test"}`` command at a time with
    a ``verdict`` or an ``error`` reply until it receives ``stop`` or the
    pipe closes.

    terminate() only signals the child. Reaping (join with escalation to
    terminate/kill) happens in join(), which wait_terminated() runs off the
    event loop.
    """

    def __init__(
        self,
        worker_id: str,
        *,
        small_primes: tuple[int, ...],
        fermat_rounds: int = 0,
        fermat_max_base: int = DEFAULT_FERMAT_MAX_BASE,
        start_method: str = "spawn",
        stop_timeout_seconds: float = 1.0,
        logging_settings: dict[str, object] | None = None,
    ) -> None:
        self.worker_id = worker_id
        self._stop_timeout_seconds = stop_timeout_seconds
        self._pending = False
        self._terminated = False
        self._reap_lock = threading.Lock()
        self._reaped = False

        ctx = mp.get_context(start_method)
        parent_conn, child_conn = ctx.Pipe(duplex=True)
        self._process = ctx.Process(
            target=_worker_loop,
            args=(
                child_conn,
                worker_id,
                tuple(small_primes),
                fermat_rounds,
                fermat_max_base,
                dict(logging_settings or {}),
            ),
            name=f"prime-pool:{worker_id}",
            daemon=True,
        )
        self._process.start()
        child_conn.close()
        self._conn = parent_conn

    async def request(self, candidate: int) -> bool:
        if self._terminated:
            raise WorkerFaultError(self.worker_id, "worker already terminated")
        if self._pending:
            raise RuntimeError(f"worker '{self.worker_id}' already has a request in flight")

        self._pending = True
        try:
            try:
                self._conn.send({"kind": "test", "candidate": candidate})
            except (OSError, ValueError) as exc:
                raise WorkerFaultError(self.worker_id, f"send failed: {type(exc).__name__}") from exc

            loop = asyncio.get_running_loop()
            try:
                reply = await loop.run_in_executor(None, self._conn.recv)
            except (EOFError, OSError) as exc:
                raise WorkerFaultError(self.worker_id, "worker process exited") from exc
        finally:
            self._pending = False
        return _verdict_from_reply(self.worker_id, reply)

    def terminate(self, *, force: bool = False) -> None:
        # Signal only; never waits. force skips the graceful stop for a child that may be mid-computation.
        if self._terminated:
            return
        self._terminated = True
        if not self._process.is_alive():
            return
        if force:
            self._process.terminate()
            return
        try:
            self._conn.send({"kind": "stop"})
        except (OSError, ValueError):
            # Stop signaling is best effort; join() escalates if the child does not exit.
            self._process.terminate()

    async def wait_terminated(self) -> None:
        self.terminate()
        if self._reaped:
            return
        await asyncio.to_thread(self.join)

    def join(self) -> None:
        """Block until the child has exited, escalating to terminate() and kill().

        Waits up to ``stop_timeout_seconds`` per step. Safe to call from any
        thread and more than once; the pipe is closed after the child is gone.
        """
        self.terminate()
        with self._reap_lock:
            if self._reaped:
                return
            process = self._process
            process.join(timeout=self._stop_timeout_seconds)
            if process.is_alive():
                process.terminate()
                process.join(timeout=self._stop_timeout_seconds)
            if process.is_alive():
                process.kill()
                process.join()
            self._conn.close()
            self._reaped = True

    def is_alive(self) -> bool:
        return not self._terminated and self._process.is_alive()


def _verdict_from_reply(worker_id: str, reply: object) -> bool:
    if not isinstance(reply, dict):
        raise WorkerFaultError(worker_id, "malformed reply")
    kind = reply.get("kind")
    if kind == "verdict":
        value = reply.get("value")
        if not isinstance(value, bool):
            raise WorkerFaultError(worker_id, "malformed verdict")
        return value
    if kind == "error":
        raise WorkerFaultError(worker_id, f"{reply.get('error_type')}: {reply.get('message')}")
    raise WorkerFaultError(worker_id, f"unexpected reply kind '{kind}'")


def _worker_loop(
    conn: Connection,
    worker_id: str,
    small_primes: tuple[int, ...],
    fermat_rounds: int,
    fermat_max_base: int,
    logging_settings: dict[str, object],
) -> None:
    # Child process entry point: one command in, one reply out.
    log_level = lifecycle_log_level(logging_settings)
    log_sink = resolve_log_sink(logging_settings, worker_id=worker_id) if log_level else None
    base_fields: dict[str, object] = {"worker_id": worker_id, "pid": os.getpid()}

    checker = PrimalityFilter(
        small_primes=small_primes,
        fermat_rounds=fermat_rounds,
        fermat_max_base=fermat_max_base,
    )
    emit_log(
        log_sink,
        level=log_level or "info",
        message="worker.loop_started",
        fields={**base_fields, "table_size": len(small_primes), "fermat_rounds": fermat_rounds},
    )

    reason = "stop"
    try:
        while True:
            try:
                command = conn.recv()
            except (EOFError, OSError):
                reason = "channel_closed"
                break
            kind = command.get("kind") if isinstance(command, dict) else None
            if kind == "stop":
                break
            if kind != "test":
                _send_reply(conn, {"kind": "error", "error_type": "ValueError", "message": "unknown command"})
                continue
            try:
                verdict = checker.is_possibly_prime(command["candidate"])
            except Exception as exc:
                _send_reply(
                    conn,
                    {"kind": "error", "error_type": type(exc).__name__, "message": str(exc)},
                )
                continue
            _send_reply(conn, {"kind": "verdict", "value": bool(verdict)})
    finally:
        emit_log(
            log_sink,
            level=log_level or "info",
            message="worker.loop_stopped",
            fields={**base_fields, "reason": reason},
        )
        close_log_sink(log_sink)
        conn.close()


def _send_reply(conn: Connection, payload: dict[str, object]) -> None:
    try:
        conn.send(payload)
    except (OSError, ValueError):
        # Parent side is gone; the next recv() ends the loop.
        return
