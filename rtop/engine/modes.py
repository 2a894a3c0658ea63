"""Input modes, tabs, events and effects for the input router.

``Mode`` names the current owner of the keyboard. It is an immutable
value: the router returns a new one for every transition.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .privileged import Outcome, Target


class Tab(int, Enum):
    DASHBOARD = 0
    PROCESSES = 1
    SERVICES = 2
    SHELL = 3
    LOGS = 4
    JOURNAL = 5

    @property
    def label(self) -> str:
        return _TAB_LABELS[self]

    @property
    def is_table(self) -> bool:
        return self in (Tab.PROCESSES, Tab.SERVICES, Tab.LOGS, Tab.JOURNAL)


_TAB_LABELS = {
    Tab.DASHBOARD: "Dashboard",
    Tab.PROCESSES: "Processes",
    Tab.SERVICES: "Services",
    Tab.SHELL: "Shell",
    Tab.LOGS: "Logs",
    Tab.JOURNAL: "Journal",
}


class PopupKind(str, Enum):
    HELP = "help"
    PROCESS = "process"
    SERVICE = "service"
    LOG = "log"
    JOURNAL = "journal"


# ── modes ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Navigation:
    tab: Tab = Tab.DASHBOARD


@dataclass(frozen=True)
class ShellFocus:
    pass


BaseMode = Union[Navigation, ShellFocus]


@dataclass(frozen=True)
class PopupOpen:
    kind: PopupKind
    title: str
    lines: tuple[str, ...] = ()
    scroll_offset: int = 0
    previous: BaseMode = field(default_factory=Navigation)

    @property
    def max_offset(self) -> int:
        return max(0, len(self.lines) - 1)


@dataclass(frozen=True)
class PasswordPrompt:
    target: Target
    attempt: int = 1
    typed: int = 0  # characters in the buffer, for the masked display
    pending: bool = False  # escalation requested, waiting for the outcome
    error: str = ""
    previous: BaseMode = field(default_factory=Navigation)


Mode = Union[Navigation, ShellFocus, PopupOpen, PasswordPrompt]


def current_tab(mode: Mode) -> Tab:
    """The tab visible underneath *mode*."""
    if isinstance(mode, (PopupOpen, PasswordPrompt)):
        mode = mode.previous
    if isinstance(mode, ShellFocus):
        return Tab.SHELL
    return mode.tab


# ── events ────────────────────────────────────────────────────


@dataclass(frozen=True)
class KeyPress:
    """One key from the terminal, named the way Textual names keys."""
    key: str
    character: str | None = None


@dataclass(frozen=True)
class Paste:
    text: str


@dataclass(frozen=True)
class Resize:
    rows: int
    cols: int


@dataclass(frozen=True)
class ContentReady:
    """Detail text gathered for the selected row."""
    kind: PopupKind
    title: str
    text: str


@dataclass(frozen=True)
class PermissionDenied:
    """An unprivileged read was refused by the OS."""
    target: Target


@dataclass(frozen=True)
class AccessResult:
    """The outcome of an escalated read."""
    outcome: Outcome


Event = Union[KeyPress, Paste, Resize, ContentReady, PermissionDenied, AccessResult]


# ── effects ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ForwardToShell:
    data: bytes


@dataclass(frozen=True)
class AppendPassword:
    text: str


@dataclass(frozen=True)
class ErasePassword:
    pass


@dataclass(frozen=True)
class ClearPassword:
    pass


@dataclass(frozen=True)
class OpenPopup:
    kind: PopupKind


@dataclass(frozen=True)
class ClosePopup:
    pass


@dataclass(frozen=True)
class ChangeTab:
    tab: Tab


@dataclass(frozen=True)
class StartShell:
    restart: bool = False


@dataclass(frozen=True)
class LeaveShell:
    pass


@dataclass(frozen=True)
class ResizeShell:
    rows: int
    cols: int


@dataclass(frozen=True)
class MoveSelection:
    delta: int


@dataclass(frozen=True)
class JumpSelection:
    to_end: bool


@dataclass(frozen=True)
class OpenSelected:
    tab: Tab


@dataclass(frozen=True)
class RequestPrivilegedRead:
    target: Target


@dataclass(frozen=True)
class Notify:
    message: str
    error: bool = False


@dataclass(frozen=True)
class QuitApp:
    pass


Effect = Union[
    ForwardToShell, AppendPassword, ErasePassword, ClearPassword,
    OpenPopup, ClosePopup, ChangeTab, StartShell, LeaveShell, ResizeShell,
    MoveSelection, JumpSelection, OpenSelected, RequestPrivilegedRead,
    Notify, QuitApp,
]
