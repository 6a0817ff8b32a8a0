from .modular import (
    DomainError,
    NoInverseError,
    abs_value,
    extended_gcd,
    modular_exponentiation,
    modular_inverse,
    to_canonical_residue,
)

__all__ = [
    "DomainError",
    "NoInverseError",
    "abs_value",
    "extended_gcd",
    "modular_exponentiation",
    "modular_inverse",
    "to_canonical_residue",
]
