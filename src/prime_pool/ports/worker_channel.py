from __future__ import annotations

from typing import Protocol, runtime_checkable


# WorkerChannel is the opaque request/reply boundary to one pooled worker.
# At most one request may be outstanding per channel.
@runtime_checkable
class WorkerChannel(Protocol):
    worker_id: str

    async def request(self, candidate: int) -> bool:
        # Resolve with exactly one verdict or raise WorkerFaultError.
        raise NotImplementedError("WorkerChannel.request must be implemented")

    def terminate(self, *, force: bool = False) -> None:
        # Signal the worker to stop without waiting; idempotent. force abandons in-flight work.
        raise NotImplementedError("WorkerChannel.terminate must be implemented")

    async def wait_terminated(self) -> None:
        # Resolve once the execution context is released; implies terminate().
        raise NotImplementedError("WorkerChannel.wait_terminated must be implemented")

    def is_alive(self) -> bool:
        raise NotImplementedError("WorkerChannel.is_alive must be implemented")
