"""Shared pytest fixtures."""

from __future__ import annotations

import sys
import threading
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from console_server.config import ServerSettings
from console_server.runner import LogEvent, ProcessSupervisor

ECHO_SCRIPT = """
import sys
print("ready", flush=True)
for line in sys.stdin:
    print("echo: " + line.rstrip("\\n"), flush=True)
"""


class RecordingSink:
    """Collects published events and lets tests wait for background output."""

    def __init__(self) -> None:
        self.events: list[LogEvent] = []
        self._condition = threading.Condition()

    def publish(self, event: LogEvent) -> None:
        with self._condition:
            self.events.append(event)
            self._condition.notify_all()

    def wait_for(
        self, predicate: Callable[[list[LogEvent]], bool], timeout: float = 10.0
    ) -> list[LogEvent]:
        with self._condition:
            matched = self._condition.wait_for(lambda: predicate(self.events), timeout)
            assert matched, f"timed out waiting for events, got {self.events!r}"
            return list(self.events)

    def wait_for_message(self, message: str, timeout: float = 10.0) -> list[LogEvent]:
        return self.wait_for(
            lambda events: any(event.message == message for event in events), timeout
        )


def python_settings(tmp_path: Path, script: str) -> ServerSettings:
    return ServerSettings(
        command=sys.executable,
        args=["-u", "-c", script],
        working_dir=tmp_path,
        static_dir=tmp_path / "no-frontend",
    )


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def make_settings(tmp_path: Path) -> Callable[[str], ServerSettings]:
    def _make(script: str = ECHO_SCRIPT) -> ServerSettings:
        return python_settings(tmp_path, script)

    return _make


@pytest.fixture()
def supervisor(
    make_settings: Callable[[str], ServerSettings], sink: RecordingSink
) -> Iterator[ProcessSupervisor]:
    supervisor = ProcessSupervisor(make_settings(ECHO_SCRIPT), sink)
    yield supervisor
    if supervisor.identifier is not None:
        supervisor.stop()
