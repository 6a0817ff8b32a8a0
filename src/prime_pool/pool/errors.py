from __future__ import annotations


class PoolError(RuntimeError):
    pass


class PoolDisposedError(PoolError):
    # Raised by test() once dispose() has begun, including for callers already waiting.
    def __init__(self, message: str = "pool disposed") -> None:
        super().__init__(message)


class AcquireTimeoutError(PoolError, TimeoutError):
    # Raised when no idle worker became available within the acquire timeout.
    pass


class WorkerFaultError(PoolError):
    # Worker reported an error or died instead of producing a verdict.
    def __init__(self, worker_id: str, message: str) -> None:
        super().__init__(f"worker '{worker_id}' faulted: {message}")
        self.worker_id = worker_id
