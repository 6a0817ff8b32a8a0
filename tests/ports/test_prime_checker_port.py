from __future__ import annotations

import pytest

from prime_pool.ports.prime_checker import PrimeChecker
from prime_pool.primes.filter import PrimalityFilter


def test_prime_checker_port_conformance() -> None:
    # Filter should conform to the PrimeChecker port at runtime for wiring safety.
    checker = PrimalityFilter.from_bound(10)
    assert isinstance(checker, PrimeChecker)


def test_prime_checker_port_returns_bool() -> None:
    # Port contract expects a boolean result for any integer input.
    checker = PrimalityFilter.from_bound(10)
    for value in (-5, 0, 1, 2, 9, 11, 2**200 + 1):
        assert isinstance(checker.is_possibly_prime(value), bool)


def test_prime_checker_port_default_raises() -> None:
    # Direct port calls are a wiring error; the default implementation raises.
    class _PortOnly(PrimeChecker):
        pass

    with pytest.raises(NotImplementedError):
        _PortOnly().is_possibly_prime(2)
