"""Event loop: applies routed input and drives the periodic tick.

The Textual app owns the actual asyncio loop. It hands every key, paste
and resize to ``dispatch()`` and calls ``tick()`` on a timer. Each tick
flushes queued shell input, syncs the pseudo-terminal size, drains shell
output, then refreshes the dashboard data, all without blocking.
"""
from __future__ import annotations

import logging
import time
from collections import deque
from typing import Any, Callable

from rtop.shared.services.datasource import DataSource, SystemDataSource
from rtop.shared.services.log_files import journal_command
from rtop.shared.services.system_stats import SystemSnapshot

from .config import RtopConfig
from .errors import PtyIOError, SpawnError
from .modes import (
    AccessResult,
    AppendPassword,
    ChangeTab,
    ClearPassword,
    ClosePopup,
    ContentReady,
    Effect,
    ErasePassword,
    Event,
    ForwardToShell,
    JumpSelection,
    LeaveShell,
    Mode,
    MoveSelection,
    Navigation,
    Notify,
    OpenPopup,
    OpenSelected,
    PasswordPrompt,
    PermissionDenied,
    PopupKind,
    QuitApp,
    RequestPrivilegedRead,
    ResizeShell,
    ShellFocus,
    StartShell,
    Tab,
    current_tab,
)
from .password import PasswordBuffer
from .privileged import (
    Failed,
    Outcome,
    PermissionRequired,
    PrivilegedAccessBroker,
    Succeeded,
)
from .pty_session import PtySession, ShellCommand, default_shell_and_args
from .router import route
from .terminal_screen import TerminalScreen

logger = logging.getLogger(__name__)

# Rows/cols of the terminal the shell view does not get:
# tab bar, view border (top+bottom), menu bar, status bar.
SHELL_CHROME_ROWS = 5
SHELL_CHROME_COLS = 2

STATUS_MESSAGE_SECONDS = 6.0

SessionFactory = Callable[..., PtySession]


class EventLoop:
    """Owns the Mode, the shell session, the password buffer and view data."""

    def __init__(
        self,
        config: RtopConfig | None = None,
        *,
        data_source: DataSource | None = None,
        broker: PrivilegedAccessBroker | None = None,
        session_factory: SessionFactory = PtySession,
        shell_command: ShellCommand | None = None,
    ) -> None:
        self.config = config or RtopConfig()
        self.data_source = data_source or SystemDataSource(self.config)
        self.broker = broker or PrivilegedAccessBroker(
            self.config.sudo_path,
            line_cap=self.config.log_line_cap,
            max_read_bytes=self.config.max_read_bytes,
        )
        self._session_factory = session_factory
        self._shell_command = shell_command or (
            ShellCommand(self.config.shell, tuple(self.config.shell_args))
            if self.config.shell
            else default_shell_and_args(tuple(self.config.shell_args))
        )

        self.mode: Mode = Navigation()
        self.password = PasswordBuffer()
        self.session: PtySession | None = None
        self.shell_notice = "Press F12 to start the shell."
        self.shell_size = (24, 80)
        self.terminal = TerminalScreen(*self.shell_size, history=self.config.scrollback_lines)
        self.quit_requested = False
        self.last_outcome: Outcome | None = None

        self.snapshot: SystemSnapshot | None = None
        self.rows: dict[Tab, list[Any]] = {tab: [] for tab in Tab if tab.is_table}
        self.selection: dict[Tab, int] = {tab: 0 for tab in Tab if tab.is_table}
        self.status_message = ""
        self.status_is_error = False
        self._status_expires = 0.0
        self._ticks = 0
        self._shutdown = False

    # ── public API ────────────────────────────────────────────

    @property
    def tab(self) -> Tab:
        return current_tab(self.mode)

    @property
    def status(self) -> str:
        if self.status_message and time.monotonic() < self._status_expires:
            return self.status_message
        return ""

    def selected_row(self, tab: Tab) -> Any | None:
        rows = self.rows.get(tab) or []
        if not rows:
            return None
        return rows[min(self.selection[tab], len(rows) - 1)]

    def dispatch(self, event: Event) -> None:
        """Route one input event and carry out its effects.

        Effects may produce follow-up events (details gathered, a
        permission refusal, an escalation outcome); those are routed in
        order before this returns.
        """
        queue: deque[Event] = deque([event])
        while queue:
            current = queue.popleft()
            new_mode, effects = route(
                self.mode,
                current,
                max_password_attempts=self.config.max_password_attempts,
            )
            self._set_mode(new_mode)
            for effect in effects:
                follow_up = self._apply(effect)
                if follow_up is not None:
                    queue.append(follow_up)

    def tick(self) -> bool:
        """Run one loop iteration; return True when shell output changed."""
        self._ticks += 1
        changed = self._pump_shell()
        self._refresh_data(force_slow=(self._ticks - 1) % self.config.slow_refresh_ticks == 0)
        return changed

    def shutdown(self) -> None:
        """Release the shell and the password. Safe to call repeatedly."""
        if self._shutdown:
            return
        self._shutdown = True
        self.password.clear()
        self._stop_shell()
        logger.info("Event loop shut down")

    # ── mode bookkeeping ──────────────────────────────────────

    def _set_mode(self, new_mode: Mode) -> None:
        old = self.mode
        self.mode = new_mode
        if isinstance(old, PasswordPrompt) and not isinstance(new_mode, PasswordPrompt):
            self.password.clear()
        if type(old) is not type(new_mode):
            logger.debug("Mode %s -> %s", type(old).__name__, type(new_mode).__name__)

    def _notify(self, message: str, error: bool = False) -> None:
        self.status_message = message
        self.status_is_error = error
        self._status_expires = time.monotonic() + STATUS_MESSAGE_SECONDS
        log = logger.warning if error else logger.info
        log("Status: %s", message)

    # ── effects ───────────────────────────────────────────────

    def _apply(self, effect: Effect) -> Event | None:
        if isinstance(effect, ForwardToShell):
            # Only the shell may receive keyboard bytes, and only while it owns input.
            if isinstance(self.mode, ShellFocus) and self.session is not None:
                self.session.write(effect.data)
        elif isinstance(effect, AppendPassword):
            if isinstance(self.mode, PasswordPrompt):
                self.password.append(effect.text)
        elif isinstance(effect, ErasePassword):
            self.password.pop()
        elif isinstance(effect, ClearPassword):
            self.password.clear()
        elif isinstance(effect, RequestPrivilegedRead):
            try:
                outcome = self.broker.escalate(effect.target, self.password)
            except Exception as exc:
                logger.exception("Privileged read failed")
                self.password.clear()
                outcome = Failed(str(exc) or type(exc).__name__)
            self.last_outcome = outcome
            return AccessResult(outcome)
        elif isinstance(effect, ResizeShell):
            self._resize_shell(effect.rows, effect.cols)
        elif isinstance(effect, ChangeTab):
            if effect.tab.is_table:
                self._refresh_table(effect.tab)
        elif isinstance(effect, StartShell):
            self._start_shell(effect.restart)
        elif isinstance(effect, LeaveShell):
            if self.config.shell_leave_policy == "terminate":
                self._stop_shell()
                self.shell_notice = "Press F12 to start the shell."
        elif isinstance(effect, MoveSelection):
            self._move_selection(self.tab, effect.delta)
        elif isinstance(effect, JumpSelection):
            count = len(self.rows.get(self.tab) or [])
            self.selection[self.tab] = max(0, count - 1) if effect.to_end else 0
        elif isinstance(effect, OpenSelected):
            return self._open_selected(effect.tab)
        elif isinstance(effect, Notify):
            self._notify(effect.message, effect.error)
        elif isinstance(effect, QuitApp):
            self.quit_requested = True
        elif isinstance(effect, (OpenPopup, ClosePopup)):
            pass  # the renderer follows self.mode
        return None

    def _move_selection(self, tab: Tab, delta: int) -> None:
        count = len(self.rows.get(tab) or [])
        if count == 0:
            self.selection[tab] = 0
            return
        self.selection[tab] = min(max(0, self.selection[tab] + delta), count - 1)

    def _open_selected(self, tab: Tab) -> Event | None:
        row = self.selected_row(tab)
        if row is None:
            return None
        if tab is Tab.PROCESSES:
            title = f"{row.name} (PID {row.pid})" if row.name else f"PID {row.pid}"
            return ContentReady(PopupKind.PROCESS, title, self.data_source.process_details(row.pid))
        if tab is Tab.SERVICES:
            return ContentReady(PopupKind.SERVICE, row.unit, self.data_source.service_status(row.unit))
        if tab is Tab.LOGS:
            outcome = self.broker.read_file(row.path, row.name)
            return self._read_result(outcome, PopupKind.LOG, row.name)
        if tab is Tab.JOURNAL:
            argv = journal_command(self.config, row.path)
            outcome = self.broker.run_command(argv, row.name)
            return self._read_result(outcome, PopupKind.JOURNAL, row.name)
        return None

    def _read_result(self, outcome: Outcome, kind: PopupKind, title: str) -> Event | None:
        self.last_outcome = outcome
        if isinstance(outcome, Succeeded):
            return ContentReady(kind, title, outcome.content)
        if isinstance(outcome, PermissionRequired):
            return PermissionDenied(outcome.target)
        if isinstance(outcome, Failed):
            self._notify(outcome.reason, error=True)
        return None

    # ── shell session ─────────────────────────────────────────

    def _start_shell(self, restart: bool) -> None:
        if self.session is not None and self.session.running:
            return
        if self.session is not None:
            self._stop_shell()
        session = self._session_factory(
            *self.shell_size,
            queue_chunks=self.config.output_queue_chunks,
            grace_seconds=self.config.terminate_grace_seconds,
        )
        try:
            session.start(self._shell_command)
        except SpawnError as exc:
            logger.error("Shell spawn failed: %s", exc)
            self.shell_notice = f"Shell unavailable: {exc.reason}. Press F12 to retry."
            self._notify(str(exc), error=True)
            return
        self.session = session
        self.terminal.reset()
        self.shell_notice = ""
        logger.info("Shell session %s", "restarted" if restart else "started")

    def _stop_shell(self) -> None:
        session, self.session = self.session, None
        if session is not None:
            session.terminate()

    def _resize_shell(self, rows: int, cols: int) -> None:
        self.shell_size = (
            max(1, rows - SHELL_CHROME_ROWS),
            max(1, cols - SHELL_CHROME_COLS),
        )
        self.terminal.resize(*self.shell_size)
        if self.session is not None and self.session.running:
            self.session.resize(*self.shell_size)

    def _pump_shell(self) -> bool:
        session = self.session
        if session is None:
            return False
        session.flush()
        if session.running and session.size != self.shell_size:
            session.resize(*self.shell_size)
        self.terminal.resize(*self.shell_size)
        changed = False
        try:
            for chunk in session.poll_output():
                self._append_output(chunk)
                changed = True
        except PtyIOError as exc:
            logger.warning("Shell output failed: %s", exc)
            session.terminate()
        if not session.running:
            session.terminate()
            status = session.exit_status
            self.session = None
            self.shell_notice = (
                f"Shell exited (status {status if status is not None else '?'}). "
                "Press F12 to restart."
            )
            changed = True
        return changed

    def _append_output(self, chunk: bytes) -> None:
        replies = self.terminal.feed(chunk)
        # Cursor reports and device attributes go back to the shell.
        if replies and self.session is not None and self.session.running:
            self.session.write(replies)

    # ── data collaborators ────────────────────────────────────

    def _refresh_data(self, force_slow: bool) -> None:
        try:
            self.snapshot = self.data_source.snapshot()
        except Exception:
            logger.warning("System snapshot failed", exc_info=True)
        tab = self.tab
        if tab is Tab.PROCESSES:
            self._refresh_table(tab)
        elif tab.is_table and force_slow:
            self._refresh_table(tab)

    def _refresh_table(self, tab: Tab) -> None:
        loaders = {
            Tab.PROCESSES: self.data_source.processes,
            Tab.SERVICES: self.data_source.services,
            Tab.LOGS: self.data_source.log_files,
            Tab.JOURNAL: self.data_source.journal_files,
        }
        try:
            self.rows[tab] = list(loaders[tab]())
        except Exception:
            logger.warning("Refreshing %s failed", tab.label, exc_info=True)
            return
        self._move_selection(tab, 0)
