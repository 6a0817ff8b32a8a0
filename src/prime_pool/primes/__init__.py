from .filter import PrimalityFilter
from .table import DEFAULT_PRIME_TABLE_BOUND, generate_primes

__all__ = ["DEFAULT_PRIME_TABLE_BOUND", "PrimalityFilter", "generate_primes"]
