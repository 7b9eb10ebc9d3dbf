"""Process supervisor and output line streaming."""

from .log_stream import ByteSource, LineStreamer, LogEvent, LogSink
from .supervisor import (
    CommandValidationError,
    CommandWriteError,
    ProcessHandle,
    ProcessNotRunningError,
    ProcessSupervisor,
    SpawnError,
    StartResult,
    SupervisorError,
    TerminationError,
)

__all__ = [
    "ByteSource",
    "CommandValidationError",
    "CommandWriteError",
    "LineStreamer",
    "LogEvent",
    "LogSink",
    "ProcessHandle",
    "ProcessNotRunningError",
    "ProcessSupervisor",
    "SpawnError",
    "StartResult",
    "SupervisorError",
    "TerminationError",
]
