from prime_pool.arithmetic import (
    DomainError,
    NoInverseError,
    abs_value,
    extended_gcd,
    modular_exponentiation,
    modular_inverse,
    to_canonical_residue,
)
from prime_pool.pool import (
    AcquireTimeoutError,
    PoolDisposedError,
    PoolError,
    PoolSnapshot,
    PrimeTestPool,
    WorkerFaultError,
)
from prime_pool.primes import PrimalityFilter, generate_primes

__all__ = [
    "AcquireTimeoutError",
    "DomainError",
    "NoInverseError",
    "PoolDisposedError",
    "PoolError",
    "PoolSnapshot",
    "PrimalityFilter",
    "PrimeTestPool",
    "WorkerFaultError",
    "abs_value",
    "extended_gcd",
    "generate_primes",
    "modular_exponentiation",
    "modular_inverse",
    "to_canonical_residue",
]
