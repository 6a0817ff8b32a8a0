from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

from prime_pool.config.models import LifecycleEventsConfig, LogExporterConfig


class LogSink(Protocol):
    def emit(self, message: LogMessage) -> None:
        ...


@dataclass(frozen=True, slots=True)
class LogMessage:
    # One pool or worker lifecycle record.
    level: str
    message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=UTC))
    fields: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.level or not self.message:
            raise ValueError("LogMessage requires non-empty level/message")

    def to_json(self) -> str:
        return json.dumps(
            {
                "level": self.level,
                "message": self.message,
                "timestamp": self.timestamp.isoformat().replace("+00:00", "Z"),
                "fields": self.fields,
            },
            separators=(",", ":"),
            ensure_ascii=False,
        )


class StdoutLogSink:
    def emit(self, message: LogMessage) -> None:
        print(message.to_json())


class JsonlLogSink:
    # Appends one JSON line per message; flushed so worker files survive a kill.
    def __init__(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        self._file = path.open("a", encoding="utf-8")

    def emit(self, message: LogMessage) -> None:
        self._file.write(message.to_json() + "\n")
        self._file.flush()

    def close(self) -> None:
        self._file.close()


@dataclass(slots=True)
class FanoutLogSink:
    sinks: list[LogSink]

    def emit(self, message: LogMessage) -> None:
        # A failing exporter must not starve the others.
        for sink in self.sinks:
            emit_log_message(sink, message)

    def close(self) -> None:
        for sink in self.sinks:
            close_log_sink(sink)


def resolve_log_sink(settings: dict[str, object] | None, *, worker_id: str | None = None) -> LogSink | None:
    """Build the sink for ``LoggingConfig.as_settings()``-shaped settings.

    Pool-side callers get the configured exporters as-is. Worker processes
    pass ``worker_id`` and have their jsonl output redirected to
    ``workers_dir/<worker>.jsonl`` (default: a ``workers`` directory next to
    the pool log), so children never interleave writes with the parent.
    """
    if not settings:
        return None
    exporters = [LogExporterConfig.model_validate(raw) for raw in settings.get("exporters") or []]
    sinks = [_exporter_sink(exporter, worker_id) for exporter in exporters]
    if not sinks:
        return None
    if len(sinks) == 1:
        return sinks[0]
    return FanoutLogSink(sinks=sinks)


def lifecycle_log_level(settings: dict[str, object] | None) -> str | None:
    # Level for lifecycle messages, or None when lifecycle logging is off.
    if settings is None:
        return None
    raw = settings.get("lifecycle_events")
    lifecycle = LifecycleEventsConfig.model_validate({} if raw is None else raw)
    return lifecycle.level if lifecycle.enabled else None


def emit_log(sink: LogSink | None, *, level: str, message: str, fields: dict[str, object]) -> None:
    if sink is None:
        return
    emit_log_message(sink, LogMessage(level=level, message=message, fields=dict(fields)))


def emit_log_message(sink: LogSink, message: LogMessage) -> None:
    # Logging never raises into the pool or the worker loop.
    try:
        sink.emit(message)
    except Exception:
        return


def close_log_sink(sink: object | None) -> None:
    close = getattr(sink, "close", None)
    if close is None:
        return
    try:
        close()
    except OSError:
        return


def _exporter_sink(exporter: LogExporterConfig, worker_id: str | None) -> LogSink:
    if exporter.kind == "stdout":
        return StdoutLogSink()
    path = Path(exporter.settings["path"])
    if worker_id is None:
        return JsonlLogSink(path)
    workers_dir = exporter.settings.get("workers_dir")
    directory = Path(workers_dir) if workers_dir else path.parent / "workers"
    return JsonlLogSink(directory / f"{worker_id.replace('#', '_')}.jsonl")
