"""rtop engine: shell session, input routing and privileged reads."""
from .config import RtopConfig
from .errors import (
    ConfigError,
    PtyIOError,
    RtopError,
    SpawnError,
    TerminalUnavailableError,
)
from .password import PasswordBuffer
from .privileged import (
    Denied,
    Failed,
    PermissionRequired,
    PrivilegedAccessBroker,
    ReadFile,
    RunCommand,
    Succeeded,
)
from .pty_session import PtySession, SessionState, ShellCommand
from .router import route

__all__ = [
    # Core loop (lazy import to avoid circular deps)
    "EventLoop",
    # Config
    "RtopConfig",
    "load_yaml_config",
    # Shell
    "PtySession",
    "SessionState",
    "ShellCommand",
    # Privileged reads
    "PasswordBuffer",
    "PrivilegedAccessBroker",
    "ReadFile",
    "RunCommand",
    "Succeeded",
    "PermissionRequired",
    "Denied",
    "Failed",
    # Routing
    "route",
    # Errors
    "ConfigError",
    "PtyIOError",
    "RtopError",
    "SpawnError",
    "TerminalUnavailableError",
]


def __getattr__(name: str):
    if name == "EventLoop":
        from .event_loop import EventLoop
        return EventLoop
    if name == "load_yaml_config":
        from .yaml_config import load_yaml_config
        return load_yaml_config
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
