from .prime_checker import PrimeChecker
from .worker_channel import WorkerChannel

__all__ = ["PrimeChecker", "WorkerChannel"]
