"""Configuration for the supervised process and the HTTP surface."""

from __future__ import annotations

import os
import shlex
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

__all__ = ["ServerSettings", "SettingsError", "load_settings", "with_overrides"]

_DEFAULT_CONFIG_FILE = "console-server.toml"
_DEFAULT_HOST = "0.0.0.0"  # noqa: S104
_DEFAULT_PORT = 8080
_DEFAULT_STATIC_DIR = Path("front/dist")
_DEFAULT_QUEUE_SIZE = 1000
_ENV_CONFIG = "CONSOLE_SERVER_CONFIG"
_ENV_COMMAND = "CONSOLE_SERVER_COMMAND"
_ENV_ARGS = "CONSOLE_SERVER_ARGS"
_ENV_WORKDIR = "CONSOLE_SERVER_WORKDIR"
_ENV_HOST = "CONSOLE_SERVER_HOST"
_ENV_PORT = "CONSOLE_SERVER_PORT"


class SettingsError(ValueError):
    """Raised when the configuration cannot describe a runnable process."""


@dataclass(slots=True, frozen=True)
class ServerSettings:
    """Process and HTTP settings, resolved once at startup."""

    command: str
    args: list[str] = field(default_factory=list)
    working_dir: Path = field(default_factory=Path.cwd)
    host: str = _DEFAULT_HOST
    port: int = _DEFAULT_PORT
    static_dir: Path = _DEFAULT_STATIC_DIR
    subscriber_queue_size: int = _DEFAULT_QUEUE_SIZE

    @property
    def argv(self) -> list[str]:
        return [self.command, *self.args]

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ServerSettings:
        process = data.get("process", {})
        http = data.get("http", {})
        logs = data.get("logs", {})
        command = process.get("command")
        if not command:
            raise SettingsError("No process command configured ([process].command)")
        args = process.get("args", [])
        if isinstance(args, str):
            args = shlex.split(args)
        return cls(
            command=str(command),
            args=[str(arg) for arg in args],
            working_dir=Path(process.get("working_dir", Path.cwd())),
            host=str(http.get("host", _DEFAULT_HOST)),
            port=int(http.get("port", _DEFAULT_PORT)),
            static_dir=Path(http.get("static_dir", _DEFAULT_STATIC_DIR)),
            subscriber_queue_size=int(logs.get("subscriber_queue_size", _DEFAULT_QUEUE_SIZE)),
        )

    @classmethod
    def from_toml(cls, path: Path) -> ServerSettings:
        return cls.from_mapping(_read_toml(path))


def _read_toml(path: Path) -> dict[str, Any]:
    return tomllib.loads(Path(path).read_text("utf-8"))


def _config_path(path: Path | None) -> Path | None:
    if path is not None:
        return Path(path)
    custom = os.environ.get(_ENV_CONFIG)
    if custom:
        return Path(custom)
    default = Path.cwd() / _DEFAULT_CONFIG_FILE
    return default if default.exists() else None


def load_settings(path: Path | None = None) -> ServerSettings:
    """Load settings from TOML, then apply ``CONSOLE_SERVER_*`` overrides."""

    data: dict[str, Any] = {}
    resolved = _config_path(path)
    if resolved is not None:
        data = _read_toml(resolved)

    process = dict(data.get("process", {}))
    http = dict(data.get("http", {}))
    if env_command := os.environ.get(_ENV_COMMAND):
        process["command"] = env_command
    if (env_args := os.environ.get(_ENV_ARGS)) is not None:
        process["args"] = shlex.split(env_args)
    if env_workdir := os.environ.get(_ENV_WORKDIR):
        process["working_dir"] = env_workdir
    if env_host := os.environ.get(_ENV_HOST):
        http["host"] = env_host
    if env_port := os.environ.get(_ENV_PORT):
        http["port"] = env_port
    return ServerSettings.from_mapping({**data, "process": process, "http": http})


def with_overrides(
    settings: ServerSettings,
    *,
    host: str | None = None,
    port: int | None = None,
) -> ServerSettings:
    """Return a copy that applies CLI overrides."""

    return replace(
        settings,
        host=host or settings.host,
        port=port or settings.port,
    )
