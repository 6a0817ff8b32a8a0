from .dispatcher import PoolSnapshot, PrimeTestPool
from .errors import AcquireTimeoutError, PoolDisposedError, PoolError, WorkerFaultError
from .idle_queue import IdleWorkerQueue
from .process_worker import ProcessWorkerChannel

__all__ = [
    "AcquireTimeoutError",
    "IdleWorkerQueue",
    "PoolDisposedError",
    "PoolError",
    "PoolSnapshot",
    "PrimeTestPool",
    "ProcessWorkerChannel",
    "WorkerFaultError",
]
