"""Tab strip across the top of the main screen."""

from __future__ import annotations

from textual.reactive import reactive
from textual.widget import Widget
from rich.text import Text

from rtop.engine.modes import Tab

# Function key shown next to each tab label.
TAB_KEYS = {
    Tab.DASHBOARD: "F2",
    Tab.PROCESSES: "F3",
    Tab.SERVICES: "F4",
    Tab.SHELL: "F12",
    Tab.LOGS: "F5",
    Tab.JOURNAL: "F6",
}


class TabBar(Widget):
    active: reactive[Tab] = reactive(Tab.DASHBOARD)

    def render(self) -> Text:
        bar = Text(" rtop ", style="bold reverse")
        for tab in Tab:
            bar.append(" ")
            label = f" {TAB_KEYS[tab]} {tab.label} "
            if tab is self.active:
                bar.append(label, style="bold black on cyan")
            else:
                bar.append(label, style="dim")
        return bar
