from __future__ import annotations

import argparse
import asyncio
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from prime_pool.config.loader import ConfigError, load_config
from prime_pool.config.models import AppConfig, PoolConfig
from prime_pool.pool.dispatcher import PrimeTestPool

# Thin embedding around PrimeTestPool.test/dispose; all logic lives in the pool.


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Test integers for probable primality on a worker pool")
    parser.add_argument("values", nargs="+", type=int, help="Integers to test")
    parser.add_argument("--config", help="Path to YAML config")
    parser.add_argument("--size", type=int, help="Override pool.size")
    parser.add_argument("--fermat-rounds", type=int, help="Override pool.fermat_rounds (0 disables)")
    parser.add_argument("--bound", type=int, help="Override pool.prime_table_bound")
    return parser


def resolve_config(args: argparse.Namespace) -> AppConfig:
    # CLI overrides take precedence over the config file.
    config = load_config(Path(args.config)) if args.config else AppConfig(version=1)
    overrides = {
        key: value
        for key, value in (
            ("size", args.size),
            ("fermat_rounds", args.fermat_rounds),
            ("prime_table_bound", args.bound),
        )
        if value is not None
    }
    if not overrides:
        return config
    try:
        pool = PoolConfig.model_validate({**config.pool.model_dump(), **overrides})
    except ValidationError as exc:
        raise ConfigError(f"Invalid CLI override: {exc}") from exc
    return config.model_copy(update={"pool": pool})


async def check_values(pool: PrimeTestPool, values: Sequence[int]) -> list[bool]:
    # All values are dispatched concurrently; results keep argument order.
    async with pool:
        return list(await asyncio.gather(*(pool.test(value) for value in values)))


def run(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = resolve_config(args)
    except ConfigError as exc:
        parser.error(str(exc))

    pool = PrimeTestPool.from_config(config.pool, logging_config=config.logging)
    verdicts = asyncio.run(check_values(pool, args.values))
    for value, verdict in zip(args.values, verdicts):
        print(f"{value}\t{'true' if verdict else 'false'}")
    return 0
