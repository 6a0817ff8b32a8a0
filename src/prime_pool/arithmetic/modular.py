from __future__ import annotations


# DomainError is raised for inputs outside an operation's domain; it is never coerced to a value.
class DomainError(ValueError):
    pass


class NoInverseError(DomainError):
    # Raised when gcd(a, n) != 1, so a has no multiplicative inverse modulo n.
    def __init__(self, a: int, n: int) -> None:
        super().__init__(f"{a} does not have inverse modulo {n}")
        self.a = a
        self.n = n


def abs_value(a: int) -> int:
    return a if a >= 0 else -a


def extended_gcd(a: int, b: int) -> tuple[int, int, int]:
    """Return (g, x, y) such that a*x + b*y == g == gcd(a, b).

    Iterative extended Euclid, so arbitrarily large inputs do not hit a
    recursion limit. Both inputs must be strictly positive.
    """
    if a <= 0 or b <= 0:
        raise DomainError("a and b MUST be > 0")

    x, y = 0, 1
    u, v = 1, 0
    while a != 0:
        q = b // a
        r = b % a
        m = x - u * q
        n = y - v * q
        b, a = a, r
        x, y = u, v
        u, v = m, n
    return b, x, y


def to_canonical_residue(a: int, n: int) -> int:
    # Smallest non-negative element congruent to a modulo n, always in [0, n).
    if n <= 0:
        raise DomainError("n must be > 0")
    residue = a % n
    # Python's % already floors; the correction keeps the contract explicit for negative remainders.
    return residue + n if residue < 0 else residue


def modular_inverse(a: int, n: int) -> int:
    """Return the inverse of a modulo n as a residue in [0, n).

    Raises NoInverseError when a and n are not coprime, DomainError when
    n is not positive.
    """
    residue = to_canonical_residue(a, n)
    if residue == 0:
        # Only the zero ring gives 0 an inverse; extended_gcd would reject a == 0 anyway.
        if n == 1:
            return 0
        raise NoInverseError(a, n)
    g, x, _ = extended_gcd(residue, n)
    if g != 1:
        raise NoInverseError(a, n)
    return to_canonical_residue(x, n)


def modular_exponentiation(b: int, e: int, n: int) -> int:
    """Compute b**e mod n with the right-to-left binary method.

    Negative exponents return the inverse of b**|e| mod n, which raises
    NoInverseError when b is not invertible modulo n.
    """
    if n <= 0:
        raise DomainError("n must be > 0")
    if n == 1:
        return 0

    b = to_canonical_residue(b, n)

    if e < 0:
        return modular_inverse(modular_exponentiation(b, abs_value(e), n), n)

    result = 1
    while e > 0:
        if e % 2 == 1:
            result = result * b % n
        e //= 2
        b = b * b % n
    return result
