"""Tests for the input router state machine."""

from __future__ import annotations

import pytest

from rtop.engine.modes import (
    AccessResult,
    AppendPassword,
    ChangeTab,
    ClearPassword,
    ClosePopup,
    ContentReady,
    ErasePassword,
    ForwardToShell,
    JumpSelection,
    KeyPress,
    LeaveShell,
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
from rtop.engine.privileged import Denied, Failed, ReadFile, RunCommand, Succeeded
from rtop.engine.router import PAGE_STEP, route


def key(name: str, character: str | None = None) -> KeyPress:
    if character is None and len(name) == 1:
        character = name
    return KeyPress(name, character)


def forwarded(effects) -> bytes:
    return b"".join(e.data for e in effects if isinstance(e, ForwardToShell))


# ── Navigation ─────────────────────────────────────────────────


def test_navigation_letters_switch_tabs() -> None:
    mode, effects = route(Navigation(Tab.PROCESSES), key("l"))
    assert mode == Navigation(Tab.SERVICES)
    assert effects == [ChangeTab(Tab.SERVICES)]

    mode, effects = route(Navigation(Tab.PROCESSES), key("h"))
    assert mode == Navigation(Tab.DASHBOARD)
    assert effects == [ChangeTab(Tab.DASHBOARD)]


def test_navigation_left_stops_at_first_tab() -> None:
    mode, effects = route(Navigation(Tab.DASHBOARD), key("left"))
    assert mode == Navigation(Tab.DASHBOARD)
    assert effects == []


def test_tab_key_cycles_and_wraps() -> None:
    mode, _ = route(Navigation(Tab.JOURNAL), key("tab"))
    assert mode == Navigation(Tab.DASHBOARD)
    mode, _ = route(Navigation(Tab.DASHBOARD), key("shift+tab"))
    assert mode == Navigation(Tab.JOURNAL)


def test_moving_onto_shell_tab_focuses_shell() -> None:
    mode, effects = route(Navigation(Tab.SERVICES), key("right"))
    assert mode == ShellFocus()
    assert effects == [ChangeTab(Tab.SHELL), StartShell()]


def test_shell_shortcut_starts_session() -> None:
    mode, effects = route(Navigation(), key("f12"))
    assert mode == ShellFocus()
    assert StartShell() in effects


@pytest.mark.parametrize("digit,tab", [("1", Tab.DASHBOARD), ("3", Tab.SERVICES), ("6", Tab.JOURNAL)])
def test_digits_jump_to_tab(digit: str, tab: Tab) -> None:
    mode, _ = route(Navigation(Tab.PROCESSES), key(digit))
    assert mode == Navigation(tab)


@pytest.mark.parametrize("name", ["q", "ctrl+c", "f10"])
def test_navigation_quit_keys(name: str) -> None:
    mode, effects = route(Navigation(), key(name))
    assert effects == [QuitApp()]
    assert mode == Navigation()


def test_table_selection_keys() -> None:
    mode = Navigation(Tab.PROCESSES)
    assert route(mode, key("down"))[1] == [MoveSelection(1)]
    assert route(mode, key("up"))[1] == [MoveSelection(-1)]
    assert route(mode, key("pagedown"))[1] == [MoveSelection(PAGE_STEP)]
    assert route(mode, key("pageup"))[1] == [MoveSelection(-PAGE_STEP)]
    assert route(mode, key("end"))[1] == [JumpSelection(to_end=True)]
    assert route(mode, key("home"))[1] == [JumpSelection(to_end=False)]
    assert route(mode, key("enter"))[1] == [OpenSelected(Tab.PROCESSES)]


def test_dashboard_ignores_selection_keys() -> None:
    assert route(Navigation(Tab.DASHBOARD), key("down")) == (Navigation(Tab.DASHBOARD), [])
    assert route(Navigation(Tab.DASHBOARD), key("enter")) == (Navigation(Tab.DASHBOARD), [])


def test_help_opens_popup() -> None:
    mode, effects = route(Navigation(Tab.LOGS), key("f1"))
    assert isinstance(mode, PopupOpen)
    assert mode.kind is PopupKind.HELP
    assert mode.previous == Navigation(Tab.LOGS)
    assert effects == [OpenPopup(PopupKind.HELP)]


def test_resize_is_forwarded_in_every_mode() -> None:
    popup = PopupOpen(PopupKind.LOG, "syslog", ("a", "b"))
    prompt = PasswordPrompt(ReadFile("/var/log/auth.log"))
    for mode in (Navigation(), ShellFocus(), popup, prompt):
        new_mode, effects = route(mode, Resize(50, 120))
        assert new_mode == mode
        assert effects == [ResizeShell(50, 120)]


# ── ShellFocus ─────────────────────────────────────────────────


def test_typing_ls_forwards_exact_bytes() -> None:
    mode = ShellFocus()
    written = b""
    for name in ("l", "s", "enter"):
        mode, effects = route(mode, key(name, "\r" if name == "enter" else None))
        assert not any(isinstance(e, ChangeTab) for e in effects)
        written += forwarded(effects)
    assert mode == ShellFocus()
    assert written == bytes([0x6C, 0x73, 0x0A])


def test_ctrl_c_in_shell_is_forwarded_not_quit() -> None:
    mode, effects = route(ShellFocus(), key("ctrl+c"))
    assert mode == ShellFocus()
    assert effects == [ForwardToShell(b"\x03")]


@pytest.mark.parametrize("name", ["h", "l", "H", "L", "q", "1", "6", "left", "right", "tab", "shift+tab"])
def test_navigation_shortcuts_are_typed_in_shell(name: str) -> None:
    mode, effects = route(ShellFocus(), key(name))
    assert mode == ShellFocus()
    assert len(effects) == 1
    assert isinstance(effects[0], ForwardToShell)


def test_every_forwarded_key_arrives_in_order() -> None:
    keys = [key(c) for c in "echo hi"] + [key("backspace"), key("ctrl+d"), key("up"), key("enter", "\r")]
    mode = ShellFocus()
    written = b""
    for k in keys:
        mode, effects = route(mode, k)
        written += forwarded(effects)
    assert written == b"echo hi\x7f\x04\x1b[A\n"


def test_function_keys_leave_shell() -> None:
    mode, effects = route(ShellFocus(), key("f3"))
    assert mode == Navigation(Tab.PROCESSES)
    assert effects == [LeaveShell(), ChangeTab(Tab.PROCESSES)]


def test_f10_quits_from_shell() -> None:
    assert route(ShellFocus(), key("f10")) == (ShellFocus(), [QuitApp()])


def test_f12_in_shell_restarts() -> None:
    assert route(ShellFocus(), key("f12")) == (ShellFocus(), [StartShell(restart=True)])


def test_paste_in_shell_forwards_verbatim() -> None:
    assert route(ShellFocus(), Paste("ls -l\n")) == (ShellFocus(), [ForwardToShell(b"ls -l\n")])


def test_paste_in_navigation_is_ignored() -> None:
    assert route(Navigation(), Paste("rm -rf /")) == (Navigation(), [])


def test_no_bytes_forwarded_outside_shell_focus() -> None:
    popup = PopupOpen(PopupKind.LOG, "syslog", tuple(str(i) for i in range(30)))
    prompt = PasswordPrompt(ReadFile("/var/log/auth.log"))
    names = ["a", "l", "enter", "ctrl+c", "up", "pagedown", "escape", "backspace", "f12", "x"]
    for start in (Navigation(), Navigation(Tab.PROCESSES), popup, prompt):
        for name in names:
            _, effects = route(start, key(name))
            assert not any(isinstance(e, ForwardToShell) for e in effects)
        _, effects = route(start, Paste("text"))
        assert not any(isinstance(e, ForwardToShell) for e in effects)


# ── PopupOpen ──────────────────────────────────────────────────


def _popup(lines: int = 30, offset: int = 0) -> PopupOpen:
    return PopupOpen(
        PopupKind.LOG, "syslog", tuple(f"line {i}" for i in range(lines)),
        scroll_offset=offset, previous=Navigation(Tab.LOGS),
    )


def test_popup_scroll_is_clamped() -> None:
    mode, _ = route(_popup(), key("up"))
    assert mode.scroll_offset == 0
    mode, _ = route(_popup(), key("pagedown"))
    assert mode.scroll_offset == PAGE_STEP
    mode, _ = route(_popup(offset=25), key("pagedown"))
    assert mode.scroll_offset == 29
    mode, _ = route(_popup(offset=12), key("home"))
    assert mode.scroll_offset == 0
    mode, _ = route(_popup(), key("end"))
    assert mode.scroll_offset == 29


@pytest.mark.parametrize("name", ["escape", "enter"])
def test_popup_close_returns_to_previous(name: str) -> None:
    mode, effects = route(_popup(), key(name))
    assert mode == Navigation(Tab.LOGS)
    assert effects == [ClosePopup()]


def test_popup_opened_from_shell_returns_to_shell() -> None:
    mode, _ = route(ShellFocus(), key("f1"))
    mode, _ = route(mode, key("escape"))
    assert mode == ShellFocus()


def test_popup_ignores_navigation_keys() -> None:
    popup = _popup()
    for name in ("l", "q", "f3", "tab"):
        assert route(popup, key(name)) == (popup, [])


def test_content_ready_opens_popup() -> None:
    mode, effects = route(Navigation(Tab.SERVICES), ContentReady(PopupKind.SERVICE, "ssh.service", "a\nb"))
    assert mode == PopupOpen(PopupKind.SERVICE, "ssh.service", ("a", "b"), previous=Navigation(Tab.SERVICES))
    assert effects == [OpenPopup(PopupKind.SERVICE)]


# ── PasswordPrompt ─────────────────────────────────────────────


TARGET = ReadFile("/var/log/auth.log", "auth.log")


def _prompt(**kwargs) -> PasswordPrompt:
    return PasswordPrompt(target=TARGET, previous=Navigation(Tab.LOGS), **kwargs)


def test_permission_denied_enters_prompt() -> None:
    mode, effects = route(Navigation(Tab.LOGS), PermissionDenied(TARGET))
    assert mode == _prompt()
    assert effects == []


def test_printable_keys_append_to_password() -> None:
    mode, effects = route(_prompt(), key("s"))
    assert effects == [AppendPassword("s")]
    assert mode.typed == 1


def test_backspace_erases() -> None:
    mode, effects = route(_prompt(typed=2), key("backspace"))
    assert effects == [ErasePassword()]
    assert mode.typed == 1
    assert route(_prompt(), key("backspace")) == (_prompt(), [])


def test_enter_with_empty_password_shows_error() -> None:
    mode, effects = route(_prompt(), key("enter", "\r"))
    assert effects == []
    assert mode.error == "Password cannot be empty"


def test_enter_requests_privileged_read() -> None:
    mode, effects = route(_prompt(typed=3), key("enter", "\r"))
    assert mode.pending
    assert effects == [RequestPrivilegedRead(TARGET)]


def test_escape_cancels_and_clears() -> None:
    mode, effects = route(_prompt(typed=3), key("escape"))
    assert mode == Navigation(Tab.LOGS)
    assert effects == [ClearPassword()]


def test_pending_prompt_ignores_keys() -> None:
    pending = _prompt(typed=3, pending=True)
    assert route(pending, key("a")) == (pending, [])


def test_success_opens_log_popup_and_clears() -> None:
    mode, effects = route(_prompt(typed=3, pending=True), AccessResult(Succeeded("x\ny")))
    assert isinstance(mode, PopupOpen)
    assert mode.kind is PopupKind.LOG
    assert mode.lines == ("x", "y")
    assert mode.previous == Navigation(Tab.LOGS)
    assert effects[0] == ClearPassword()


def test_journal_success_opens_journal_popup() -> None:
    target = RunCommand(("journalctl", "--file", "x"), "system.journal")
    prompt = PasswordPrompt(target=target, typed=1, pending=True, previous=Navigation(Tab.JOURNAL))
    mode, _ = route(prompt, AccessResult(Succeeded("entry")))
    assert mode.kind is PopupKind.JOURNAL
    assert mode.title == "system.journal"


def test_first_denial_reprompts() -> None:
    mode, effects = route(_prompt(typed=3, pending=True), AccessResult(Denied()))
    assert isinstance(mode, PasswordPrompt)
    assert mode.attempt == 2
    assert mode.typed == 0
    assert not mode.pending
    assert mode.error == "Sorry, try again."
    assert effects == [ClearPassword()]


def test_second_denial_gives_up_with_notice() -> None:
    mode, effects = route(_prompt(attempt=2, typed=3, pending=True), AccessResult(Denied()))
    assert mode == Navigation(Tab.LOGS)
    assert ClearPassword() in effects
    notices = [e for e in effects if isinstance(e, Notify)]
    assert len(notices) == 1 and notices[0].error


def test_failure_returns_with_one_line_error() -> None:
    mode, effects = route(_prompt(typed=3, pending=True), AccessResult(Failed("sudo not found")))
    assert mode == Navigation(Tab.LOGS)
    assert effects == [ClearPassword(), Notify("sudo not found", error=True)]


def test_current_tab_sees_through_overlays() -> None:
    assert current_tab(_popup()) is Tab.LOGS
    assert current_tab(PasswordPrompt(TARGET, previous=ShellFocus())) is Tab.SHELL
