from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Protocol

from prime_pool.arithmetic.modular import modular_exponentiation
from prime_pool.ports.prime_checker import PrimeChecker
from prime_pool.primes.table import DEFAULT_PRIME_TABLE_BOUND, generate_primes

DEFAULT_FERMAT_MAX_BASE = 2**48


class RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int:
        ...


@dataclass(frozen=True, slots=True)
class PrimalityFilter(PrimeChecker):
    # Trial division against the small-prime table, optionally followed by Fermat rounds.
    small_primes: tuple[int, ...]
    fermat_rounds: int = 0
    fermat_max_base: int = DEFAULT_FERMAT_MAX_BASE
    random_source: RandomSource = field(default_factory=secrets.SystemRandom)

    def __post_init__(self) -> None:
        if self.fermat_rounds < 0:
            raise ValueError("fermat_rounds must be >= 0")
        if self.fermat_max_base < 2:
            raise ValueError("fermat_max_base must be >= 2")

    @classmethod
    def from_bound(
        cls,
        bound: int = DEFAULT_PRIME_TABLE_BOUND,
        *,
        fermat_rounds: int = 0,
        fermat_max_base: int = DEFAULT_FERMAT_MAX_BASE,
    ) -> PrimalityFilter:
        # Convenience constructor that builds its own table; pools pass a shared table instead.
        return cls(
            small_primes=generate_primes(bound),
            fermat_rounds=fermat_rounds,
            fermat_max_base=fermat_max_base,
        )

    def is_possibly_prime(self, candidate: int) -> bool:
        # Values below 2 are not prime by convention; no error is raised.
        if candidate < 2:
            return False
        # Stage 1: a tabulated prime is prime; any tabulated divisor proves a composite.
        for p in self.small_primes:
            if candidate == p:
                return True
            if candidate % p == 0:
                return False
        return self._passes_fermat(candidate)

    def _passes_fermat(self, candidate: int) -> bool:
        upper = min(candidate - 2, self.fermat_max_base)
        if self.fermat_rounds == 0 or upper < 2:
            return True
        for _ in range(self.fermat_rounds):
            base = self.random_source.randint(2, upper)
            if modular_exponentiation(base, candidate - 1, candidate) != 1:
                # base is a Fermat witness.
                return False
        return True
