"""Main screen: tab strip, the active tab's view, key hints and status."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import events
from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import ContentSwitcher

from rtop.engine.modes import (
    KeyPress,
    Paste,
    PasswordPrompt,
    PopupOpen,
    ShellFocus,
    Tab,
)
from rtop.tui.widgets.dashboard import DashboardPanel
from rtop.tui.widgets.menu_bar import MenuBar
from rtop.tui.widgets.shell_view import ShellView
from rtop.tui.widgets.status_bar import StatusBar
from rtop.tui.widgets.tab_bar import TabBar
from rtop.tui.widgets.tables import RowTable, log_table, process_table, service_table

if TYPE_CHECKING:
    from rtop.engine.event_loop import EventLoop

TAB_VIEW_IDS = {
    Tab.DASHBOARD: "dashboard",
    Tab.PROCESSES: "processes",
    Tab.SERVICES: "services",
    Tab.SHELL: "shell",
    Tab.LOGS: "logs",
    Tab.JOURNAL: "journal",
}


def input_owner(mode) -> str:
    if isinstance(mode, PasswordPrompt):
        return "password"
    if isinstance(mode, PopupOpen):
        return "popup"
    if isinstance(mode, ShellFocus):
        return "shell"
    return "navigation"


class MainScreen(Screen):
    """Hands every key and paste to the event loop and draws its state."""

    def compose(self) -> ComposeResult:
        yield TabBar(id="tab-bar")
        with ContentSwitcher(initial="dashboard", id="views"):
            yield DashboardPanel(id="dashboard")
            yield process_table(id="processes")
            yield service_table(id="services")
            yield ShellView(id="shell")
            yield log_table("No readable log files", id="logs")
            yield log_table("No journal files", id="journal")
        yield MenuBar(id="menu-bar")
        yield StatusBar(id="status-bar")

    def on_mount(self) -> None:
        self.refresh_view(self.app.engine)

    def on_key(self, event: events.Key) -> None:
        self.app.handle(KeyPress(event.key, event.character))
        event.stop()
        event.prevent_default()

    def on_paste(self, event: events.Paste) -> None:
        self.app.handle(Paste(event.text))
        event.stop()

    def refresh_view(self, engine: EventLoop) -> None:
        tab = engine.tab
        self.query_one(TabBar).active = tab
        self.query_one(ContentSwitcher).current = TAB_VIEW_IDS[tab]

        if tab is Tab.DASHBOARD:
            self.query_one(DashboardPanel).show(engine.snapshot)
        elif tab is Tab.SHELL:
            self.query_one(ShellView).show(engine.terminal, engine.shell_notice)
        else:
            table = self.query_one(f"#{TAB_VIEW_IDS[tab]}", RowTable)
            table.show(engine.rows[tab], engine.selection[tab])

        owner = input_owner(engine.mode)
        menu = self.query_one(MenuBar)
        menu.context = "table" if owner == "navigation" and tab.is_table else owner

        status = self.query_one(StatusBar)
        if engine.snapshot is not None:
            status.hostname = engine.snapshot.hostname
            status.uptime = engine.snapshot.uptime_seconds
        status.owner = owner
        status.shell_running = engine.session is not None and engine.session.running
        status.message = engine.status
        status.is_error = engine.status_is_error
