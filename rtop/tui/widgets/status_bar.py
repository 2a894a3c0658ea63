"""Status bar: bottom line with host, uptime, input owner and notices."""

from __future__ import annotations

from textual.reactive import reactive
from textual.widget import Widget
from rich.text import Text

from rtop.shared.services.system_stats import format_duration


class StatusBar(Widget):
    """Single-line status bar."""

    hostname: reactive[str] = reactive("")
    uptime: reactive[float] = reactive(0.0)
    owner: reactive[str] = reactive("navigation")
    message: reactive[str] = reactive("")
    is_error: reactive[bool] = reactive(False)
    shell_running: reactive[bool] = reactive(False)

    def render(self) -> Text:
        owner_colors = {
            "navigation": "green",
            "shell": "yellow",
            "popup": "cyan",
            "password": "magenta",
        }
        bar = Text()
        bar.append(f" {self.hostname or 'localhost'} ", style="bold")
        bar.append(" │ ", style="dim")
        bar.append(f"up {format_duration(self.uptime)}", style="dim")
        bar.append(" │ ", style="dim")
        bar.append(f"● {self.owner}", style=owner_colors.get(self.owner, "white"))
        bar.append(" │ ", style="dim")
        bar.append("shell running" if self.shell_running else "no shell", style="dim")
        if self.message:
            bar.append("  ")
            bar.append(self.message, style="bold red" if self.is_error else "italic")
        return bar
