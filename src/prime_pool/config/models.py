from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from prime_pool.primes.filter import DEFAULT_FERMAT_MAX_BASE
from prime_pool.primes.table import DEFAULT_PRIME_TABLE_BOUND

# Config models map YAML sections to typed structures; unknown keys fail fast.


class PoolConfig(BaseModel):
    # Worker pool sizing, primality stages and process lifecycle knobs.
    model_config = ConfigDict(extra="forbid")
    size: int = Field(default=4, ge=1)
    prime_table_bound: int = Field(default=DEFAULT_PRIME_TABLE_BOUND, ge=2)
    # 0 keeps the Fermat stage disabled; only trial division runs.
    fermat_rounds: int = Field(default=0, ge=0)
    fermat_max_base: int = Field(default=DEFAULT_FERMAT_MAX_BASE, ge=2)
    acquire_timeout_seconds: float | None = Field(default=None, gt=0)
    # No "fork": replacement workers start from a parent that already runs executor threads.
    start_method: Literal["spawn", "forkserver"] = "spawn"
    stop_timeout_seconds: float = Field(default=1.0, gt=0)


class LifecycleEventsConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    enabled: bool = True
    level: str = Field(default="info", min_length=1)


class LogExporterConfig(BaseModel):
    # stdout exporters take no settings; jsonl exporters need settings.path.
    model_config = ConfigDict(extra="forbid")
    kind: Literal["stdout", "jsonl"]
    settings: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _jsonl_needs_path(self) -> LogExporterConfig:
        path = self.settings.get("path")
        if self.kind == "jsonl" and (not isinstance(path, str) or not path):
            raise ValueError("jsonl exporter requires settings.path")
        return self


class LoggingConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    lifecycle_events: LifecycleEventsConfig = Field(default_factory=LifecycleEventsConfig)
    exporters: list[LogExporterConfig] = Field(default_factory=list)

    def as_settings(self) -> dict[str, object]:
        # Plain mapping form shipped to worker processes and sink resolution.
        return self.model_dump(mode="python")


class AppConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")
    version: int
    pool: PoolConfig = Field(default_factory=PoolConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
