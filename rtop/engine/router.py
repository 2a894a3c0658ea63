"""Input router: the single place where mode transitions happen.

``route(mode, event)`` is a pure function returning the next mode and the
effects the event loop must carry out. The same letter means "switch
tab" in Navigation and "type this letter" in ShellFocus; only the fixed
function-key shortcuts are commands in every mode.
"""
from __future__ import annotations

from dataclasses import replace

from .keys import shell_bytes
from .modes import (
    AccessResult,
    BaseMode,
    ChangeTab,
    ClearPassword,
    ClosePopup,
    ContentReady,
    Effect,
    AppendPassword,
    ErasePassword,
    Event,
    ForwardToShell,
    JumpSelection,
    KeyPress,
    LeaveShell,
    Mode,
    MoveSelection,
    Navigation,
    Notify,
    OpenPopup,
    OpenSelected,
    Paste,
    PasswordPrompt,
    PermissionDenied,
    PopupKind,
    PopupOpen,
    QuitApp,
    RequestPrivilegedRead,
    Resize,
    ResizeShell,
    ShellFocus,
    StartShell,
    Tab,
    current_tab,
)
from .privileged import Denied, Failed, ReadFile, Succeeded, Target

PAGE_STEP = 10
TAB_COUNT = len(Tab)

# Function keys are commands in every mode and never reach the shell.
FUNCTION_TABS = {
    "f2": Tab.DASHBOARD,
    "f3": Tab.PROCESSES,
    "f4": Tab.SERVICES,
    "f5": Tab.LOGS,
    "f6": Tab.JOURNAL,
}
SHELL_KEY = "f12"
HELP_KEY = "f1"
QUIT_KEY = "f10"

# Letter and digit shortcuts: Navigation only.
_DIGIT_TABS = {str(tab.value + 1): tab for tab in Tab}
_PREV_TAB_KEYS = {"left", "h", "H"}
_NEXT_TAB_KEYS = {"right", "l", "L"}
_NAV_QUIT_KEYS = {"q", "ctrl+c", QUIT_KEY}

_SELECTION_STEPS = {
    "up": -1,
    "down": 1,
    "pageup": -PAGE_STEP,
    "pagedown": PAGE_STEP,
}

HELP_LINES: tuple[str, ...] = (
    "Navigation",
    "  Left/Right, h/l, Tab/Shift+Tab, 1-6    switch tabs",
    "  F2 Dashboard  F3 Processes  F4 Services  F5 Logs  F6 Journal",
    "  F12 Shell     F1 Help       F10 / q / Ctrl+C quit",
    "",
    "Tables (Processes, Services, Logs, Journal)",
    "  Up/Down, PageUp/PageDown, Home/End    move selection",
    "  Enter                                 open details",
    "",
    "Shell",
    "  Keys go to your shell, Ctrl+C included. F10 exits rtop.",
    "  F2-F6 leave the shell; it keeps running in the background.",
    "  After the shell exits, press F12 to start a new one.",
    "",
    "Popups",
    "  Up/Down, PageUp/PageDown, Home/End scroll; Esc or Enter closes.",
    "",
    "Protected logs ask for your sudo password. It is used once and",
    "then wiped; it is never stored.",
)


def route(
    mode: Mode,
    event: Event,
    *,
    max_password_attempts: int = 2,
) -> tuple[Mode, list[Effect]]:
    """Return the mode after *event* and the effects it triggers."""
    if isinstance(event, Resize):
        return mode, [ResizeShell(event.rows, event.cols)]

    if isinstance(mode, PasswordPrompt):
        return _route_password(mode, event, max_password_attempts)
    if isinstance(mode, PopupOpen):
        return _route_popup(mode, event)

    if isinstance(event, ContentReady):
        return _open_popup(event.kind, event.title, event.text, mode)
    if isinstance(event, PermissionDenied):
        return PasswordPrompt(target=event.target, previous=mode), []
    if isinstance(event, AccessResult):
        return mode, []

    if isinstance(mode, ShellFocus):
        return _route_shell(mode, event)
    return _route_navigation(mode, event)


# ── Navigation ────────────────────────────────────────────────


def _route_navigation(mode: Navigation, event: Event) -> tuple[Mode, list[Effect]]:
    if not isinstance(event, KeyPress):
        return mode, []
    key = event.key

    if key in _NAV_QUIT_KEYS:
        return mode, [QuitApp()]
    if key == HELP_KEY:
        return _open_popup(PopupKind.HELP, "Help", "\n".join(HELP_LINES), mode)
    if key == SHELL_KEY:
        return _go_to(mode, Tab.SHELL)
    if key in FUNCTION_TABS:
        return _go_to(mode, FUNCTION_TABS[key])
    if key in _DIGIT_TABS:
        return _go_to(mode, _DIGIT_TABS[key])
    if key in _PREV_TAB_KEYS:
        return _go_to(mode, Tab(max(0, mode.tab.value - 1)))
    if key in _NEXT_TAB_KEYS:
        return _go_to(mode, Tab(min(TAB_COUNT - 1, mode.tab.value + 1)))
    if key == "tab":
        return _go_to(mode, Tab((mode.tab.value + 1) % TAB_COUNT))
    if key == "shift+tab":
        return _go_to(mode, Tab((mode.tab.value - 1) % TAB_COUNT))

    if mode.tab.is_table:
        if key in _SELECTION_STEPS:
            return mode, [MoveSelection(_SELECTION_STEPS[key])]
        if key in ("home", "end"):
            return mode, [JumpSelection(to_end=key == "end")]
        if key == "enter":
            return mode, [OpenSelected(mode.tab)]
    return mode, []


# ── ShellFocus ────────────────────────────────────────────────


def _route_shell(mode: ShellFocus, event: Event) -> tuple[Mode, list[Effect]]:
    if isinstance(event, Paste):
        if not event.text:
            return mode, []
        return mode, [ForwardToShell(event.text.encode("utf-8"))]
    if not isinstance(event, KeyPress):
        return mode, []
    key = event.key

    if key == QUIT_KEY:
        return mode, [QuitApp()]
    if key == HELP_KEY:
        return _open_popup(PopupKind.HELP, "Help", "\n".join(HELP_LINES), mode)
    if key == SHELL_KEY:
        return mode, [StartShell(restart=True)]
    if key in FUNCTION_TABS:
        return _go_to(mode, FUNCTION_TABS[key])

    data = shell_bytes(key, event.character)
    if data is None:
        return mode, []
    return mode, [ForwardToShell(data)]


def _go_to(mode: BaseMode, tab: Tab) -> tuple[Mode, list[Effect]]:
    if tab is current_tab(mode):
        return mode, []
    if tab is Tab.SHELL:
        return ShellFocus(), [ChangeTab(Tab.SHELL), StartShell()]
    effects: list[Effect] = []
    if isinstance(mode, ShellFocus):
        effects.append(LeaveShell())
    effects.append(ChangeTab(tab))
    return Navigation(tab), effects


# ── PopupOpen ─────────────────────────────────────────────────


def _open_popup(
    kind: PopupKind, title: str, text: str, previous: BaseMode,
) -> tuple[Mode, list[Effect]]:
    lines = tuple(text.splitlines()) or ("",)
    popup = PopupOpen(kind=kind, title=title, lines=lines, previous=previous)
    return popup, [OpenPopup(kind)]


def _route_popup(mode: PopupOpen, event: Event) -> tuple[Mode, list[Effect]]:
    if not isinstance(event, KeyPress):
        return mode, []
    key = event.key

    if key in ("escape", "enter") or (key == HELP_KEY and mode.kind is PopupKind.HELP):
        return mode.previous, [ClosePopup()]
    if key in _SELECTION_STEPS:
        offset = mode.scroll_offset + _SELECTION_STEPS[key]
    elif key == "home":
        offset = 0
    elif key == "end":
        offset = mode.max_offset
    else:
        return mode, []
    offset = min(max(0, offset), mode.max_offset)
    if offset == mode.scroll_offset:
        return mode, []
    return replace(mode, scroll_offset=offset), []


# ── PasswordPrompt ────────────────────────────────────────────


def _popup_kind_for(target: Target) -> PopupKind:
    return PopupKind.LOG if isinstance(target, ReadFile) else PopupKind.JOURNAL


def _route_password(
    mode: PasswordPrompt, event: Event, max_attempts: int,
) -> tuple[Mode, list[Effect]]:
    if isinstance(event, AccessResult):
        return _password_result(mode, event, max_attempts)
    if mode.pending:
        return mode, []

    if isinstance(event, Paste):
        text = "".join(ch for ch in event.text if ch.isprintable())
        if not text:
            return mode, []
        return replace(mode, typed=mode.typed + len(text), error=""), [AppendPassword(text)]
    if not isinstance(event, KeyPress):
        return mode, []
    key = event.key

    if key == "escape":
        return mode.previous, [ClearPassword()]
    if key == "enter":
        if mode.typed == 0:
            return replace(mode, error="Password cannot be empty"), []
        return replace(mode, pending=True, error=""), [RequestPrivilegedRead(mode.target)]
    if key == "backspace":
        if mode.typed == 0:
            return mode, []
        return replace(mode, typed=mode.typed - 1), [ErasePassword()]
    char = event.character
    if char and len(char) == 1 and char.isprintable() and not key.startswith("ctrl+"):
        return replace(mode, typed=mode.typed + 1, error=""), [AppendPassword(char)]
    return mode, []


def _password_result(
    mode: PasswordPrompt, event: AccessResult, max_attempts: int,
) -> tuple[Mode, list[Effect]]:
    outcome = event.outcome
    if isinstance(outcome, Succeeded):
        popup, effects = _open_popup(
            _popup_kind_for(mode.target),
            mode.target.title,
            outcome.content,
            mode.previous,
        )
        return popup, [ClearPassword(), *effects]
    if isinstance(outcome, Denied):
        if mode.attempt < max_attempts:
            retry = PasswordPrompt(
                target=mode.target,
                attempt=mode.attempt + 1,
                error=outcome.message,
                previous=mode.previous,
            )
            return retry, [ClearPassword()]
        return mode.previous, [
            ClearPassword(),
            Notify(
                f"Access denied: {mode.attempt} incorrect password attempt(s)",
                error=True,
            ),
        ]
    reason = outcome.reason if isinstance(outcome, Failed) else "Permission denied"
    return mode.previous, [ClearPassword(), Notify(reason, error=True)]
