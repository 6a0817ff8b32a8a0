from .logging import (
    FanoutLogSink,
    JsonlLogSink,
    LogMessage,
    LogSink,
    StdoutLogSink,
    close_log_sink,
    emit_log,
    lifecycle_log_level,
    resolve_log_sink,
)

__all__ = [
    "FanoutLogSink",
    "JsonlLogSink",
    "LogMessage",
    "LogSink",
    "StdoutLogSink",
    "close_log_sink",
    "emit_log",
    "lifecycle_log_level",
    "resolve_log_sink",
]
