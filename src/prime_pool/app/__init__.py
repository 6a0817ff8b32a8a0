from .cli import build_parser, check_values, run

__all__ = ["build_parser", "check_values", "run"]
