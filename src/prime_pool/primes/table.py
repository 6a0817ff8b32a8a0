from __future__ import annotations

import math

# Bound used by worker processes when no configuration overrides it.
DEFAULT_PRIME_TABLE_BOUND = 2000


def generate_primes(bound: int) -> tuple[int, ...]:
    # Ascending primes strictly below bound; the table is shared read-only by every worker.
    if bound <= 2:
        return ()
    return tuple(n for n, prime in enumerate(_sieve(bound - 1)) if prime)


def _sieve(max_n: int) -> list[bool]:
    # Sieve of Eratosthenes over [0, max_n].
    is_prime = [True] * (max_n + 1)
    is_prime[0] = False
    is_prime[1] = False

    for p in range(2, int(math.isqrt(max_n)) + 1):
        if is_prime[p]:
            for multiple in range(p * p, max_n + 1, p):
                is_prime[multiple] = False

    return is_prime
