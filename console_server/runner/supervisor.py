"""Supervisor owning the lifecycle of the single managed child process."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import IO

from console_server.config import ServerSettings
from console_server.runner.log_stream import LineStreamer, LogEvent, LogSink

__all__ = [
    "CommandValidationError",
    "CommandWriteError",
    "ProcessHandle",
    "ProcessNotRunningError",
    "ProcessSupervisor",
    "SpawnError",
    "StartResult",
    "SupervisorError",
    "TerminationError",
]

logger = logging.getLogger(__name__)

Killer = Callable[[int, int], None]

if os.name == "nt":  # pragma: no cover - Windows fallback
    _KILL_SIGNAL = signal.SIGTERM
    _default_killer = os.kill
else:
    _KILL_SIGNAL = signal.SIGKILL
    # The child leads its own session, so its pid is also its process group id.
    _default_killer = os.killpg

ALREADY_STOPPED = "Server is already stopped or was never started."
NOT_RUNNING = "Server process is not running or stdin is closed."


class SupervisorError(RuntimeError):
    """Base class for failures reported back to the caller."""


class SpawnError(SupervisorError):
    """Raised when the child process cannot be created."""


class CommandValidationError(SupervisorError):
    """Raised when a command is empty after trimming."""


class ProcessNotRunningError(SupervisorError):
    """Raised when a command is sent while no process is running."""


class TerminationError(SupervisorError):
    """Raised when the kill request fails; the pid is kept for a retry."""


class CommandWriteError(SupervisorError):
    """Raised when writing or flushing the child's stdin fails."""


@dataclass(slots=True)
class ProcessHandle:
    """The one supervised child, if any.

    ``identifier`` and ``process`` are guarded by the supervisor's identifier
    lock, ``input_channel`` by its input lock.
    """

    identifier: int | None = None
    input_channel: IO[bytes] | None = None
    process: subprocess.Popen[bytes] | None = None


@dataclass(slots=True, frozen=True)
class StartResult:
    identifier: int | None

    @property
    def message(self) -> str:
        pid = "no pid" if self.identifier is None else str(self.identifier)
        return f"Server started (PID: {pid})"


class ProcessSupervisor:
    """Start, stop and feed commands to the configured child process.

    Every public method may be called from any thread. The identifier lock is
    only held for quick reads and writes of the pid; the input lock is held
    across a full write+flush so commands never interleave on stdin. When both
    are needed the identifier lock is taken first.
    """

    def __init__(
        self,
        settings: ServerSettings,
        sink: LogSink,
        *,
        killer: Killer = _default_killer,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.settings = settings
        self.sink = sink
        self._killer = killer
        self._env = dict(env) if env is not None else None
        self._handle = ProcessHandle()
        self._identifier_lock = threading.Lock()
        self._input_lock = threading.Lock()

    @property
    def identifier(self) -> int | None:
        with self._identifier_lock:
            return self._handle.identifier

    def start(self) -> StartResult:
        argv = self.settings.argv
        try:
            process = subprocess.Popen(  # noqa: S603
                argv,
                cwd=str(self.settings.working_dir),
                env=self._env,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as exc:
            message = f"Error starting server: {exc}"
            logger.error(message)
            with self._input_lock:
                self._handle.input_channel = None
            raise SpawnError(message) from exc

        with self._input_lock:
            self._handle.input_channel = process.stdin
        with self._identifier_lock:
            previous = self._handle.identifier
            self._handle.identifier = process.pid
            self._handle.process = process
        if previous is not None:
            logger.warning(
                "Started a new process while PID %s was still recorded; it is no longer tracked",
                previous,
            )

        if process.stdout is not None:
            LineStreamer(process.stdout, self.sink, is_error=False, name="stdout").start()
        if process.stderr is not None:
            LineStreamer(process.stderr, self.sink, is_error=True, name="stderr").start()

        result = StartResult(identifier=process.pid)
        logger.info(result.message)
        return result

    def stop(self) -> str:
        with self._identifier_lock:
            pid, process = self._handle.identifier, self._handle.process
            self._handle.identifier = None
            self._handle.process = None

        if pid is None:
            logger.info(ALREADY_STOPPED)
            return ALREADY_STOPPED

        try:
            self._killer(pid, _KILL_SIGNAL)
        except OSError as exc:
            message = f"Failed to stop server (PID: {pid}). Error: {exc}"
            logger.error(message)
            self.sink.publish(LogEvent(message=message, is_error=True))
            with self._identifier_lock:
                self._handle.identifier = pid
                self._handle.process = process
            raise TerminationError(message) from exc

        message = f"Server stopped successfully. (PID: {pid})"
        logger.info(message)
        self.sink.publish(LogEvent(message=message, is_error=False))
        with self._input_lock:
            channel = self._handle.input_channel
            self._handle.input_channel = None
        if channel is not None:
            _close_quietly(channel)
        if process is not None:
            _reap(process)
        return message

    def send_command(self, command: str) -> str:
        text = command.strip()
        if not text:
            raise CommandValidationError("Command cannot be empty.")
        payload = f"{text}\n".encode()

        with self._input_lock:
            channel = self._handle.input_channel
            if channel is None:
                self.sink.publish(LogEvent(message=NOT_RUNNING, is_error=True))
                raise ProcessNotRunningError(NOT_RUNNING)

            self.sink.publish(LogEvent(message=text, is_error=False))
            try:
                channel.write(payload)
            except (OSError, ValueError) as exc:
                message = f"Failed to write to stdin: {exc}"
                logger.error(message)
                raise CommandWriteError(message) from exc
            try:
                channel.flush()
            except (OSError, ValueError) as exc:
                message = f"Failed to flush stdin: {exc}"
                logger.error(message)
                raise CommandWriteError(message) from exc

        return f"Command '{text}' sent."


def _close_quietly(channel: IO[bytes]) -> None:
    try:
        channel.close()
    except OSError:
        logger.debug("stdin pipe was already broken when closing", exc_info=True)


def _reap(process: subprocess.Popen[bytes]) -> None:
    def _wait() -> None:
        code = process.wait()
        logger.debug("Process %s exited with code %s", process.pid, code)

    threading.Thread(target=_wait, name=f"reaper-{process.pid}", daemon=True).start()
