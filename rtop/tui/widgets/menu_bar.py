"""Key hints for whoever currently owns the keyboard."""

from __future__ import annotations

from textual.reactive import reactive
from textual.widget import Widget
from rich.text import Text

HINTS: dict[str, tuple[tuple[str, str], ...]] = {
    "navigation": (
        ("←/→", "Tabs"),
        ("↑/↓", "Select"),
        ("Enter", "Details"),
        ("F12", "Shell"),
        ("F1", "Help"),
        ("q", "Quit"),
    ),
    "table": (
        ("←/→", "Tabs"),
        ("↑/↓ PgUp/PgDn", "Select"),
        ("Enter", "Details"),
        ("F12", "Shell"),
        ("F1", "Help"),
        ("q", "Quit"),
    ),
    "shell": (
        ("F2-F6", "Leave shell"),
        ("F12", "Restart"),
        ("F1", "Help"),
        ("F10", "Quit"),
    ),
    "popup": (
        ("↑/↓ PgUp/PgDn", "Scroll"),
        ("Esc/Enter", "Close"),
    ),
    "password": (
        ("Enter", "Submit"),
        ("Esc", "Cancel"),
    ),
}


class MenuBar(Widget):
    context: reactive[str] = reactive("navigation")

    def render(self) -> Text:
        bar = Text()
        for key, label in HINTS.get(self.context, HINTS["navigation"]):
            bar.append(f" {key} ", style="bold black on grey70")
            bar.append(f" {label}  ")
        return bar
