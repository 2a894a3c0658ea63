"""Exception hierarchy for the terminal multiplexing core.

Privileged-read results are returned as outcome values (see
``rtop.engine.privileged``); exceptions here cover the failures that
abort an operation outright.
"""
from __future__ import annotations


class RtopError(Exception):
    """Base exception for all rtop errors."""


class SpawnError(RtopError):
    """The shell could not be started inside a pseudo-terminal."""
    def __init__(self, shell: str, reason: str):
        self.shell = shell
        self.reason = reason
        super().__init__(f"Failed to start shell {shell}: {reason}")


class PtyIOError(RtopError):
    """A read or write on the pseudo-terminal master failed."""
    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Pseudo-terminal I/O failed: {reason}")


class ConfigError(RtopError):
    """A configuration value is missing or out of range."""
    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid config value for '{key}': {reason}")


class TerminalUnavailableError(RtopError):
    """No interactive terminal is attached, so the UI cannot run."""
    def __init__(self, stream: str = "stdout"):
        self.stream = stream
        super().__init__(
            f"rtop needs an interactive terminal ({stream} is not a TTY)"
        )
