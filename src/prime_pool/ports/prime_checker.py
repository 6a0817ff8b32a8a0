from __future__ import annotations

from typing import Protocol, runtime_checkable


# PrimeChecker port defines the boundary for the fast primality verdict computed inside a worker.
@runtime_checkable
class PrimeChecker(Protocol):
    def is_possibly_prime(self, candidate: int) -> bool:
        """Return False for a definite composite, True when the candidate survives every stage."""
        # Port contract has no implementation; calling it directly is a wiring error.
        raise NotImplementedError("PrimeChecker is a port; use a concrete adapter.")
