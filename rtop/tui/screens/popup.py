"""Modal popup for read-only detail and log text."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Static
from rich.text import Text

from rtop.engine.modes import KeyPress, PopupOpen

if TYPE_CHECKING:
    from rtop.engine.event_loop import EventLoop


class PopupScreen(ModalScreen[None]):
    """Shows the lines of the current ``PopupOpen`` mode from its scroll offset."""

    CSS_PATH = "../styles/modal.tcss"

    def compose(self) -> ComposeResult:
        with Vertical(id="popup-dialog"):
            yield Static("", id="popup-title")
            yield Static("", id="popup-body")
            yield Static(
                "↑/↓ PgUp/PgDn Home/End scroll · Esc/Enter close",
                id="popup-hint",
            )

    def on_mount(self) -> None:
        self.refresh_view(self.app.engine)

    def on_key(self, event: events.Key) -> None:
        self.app.handle(KeyPress(event.key, event.character))
        event.stop()
        event.prevent_default()

    def refresh_view(self, engine: EventLoop) -> None:
        mode = engine.mode
        if not isinstance(mode, PopupOpen):
            return
        body = self.query_one("#popup-body", Static)
        height = max(1, body.size.height or 20)
        visible = mode.lines[mode.scroll_offset : mode.scroll_offset + height]
        body.update(Text("\n".join(visible)))
        last = min(len(mode.lines), mode.scroll_offset + height)
        self.query_one("#popup-title", Static).update(
            Text.assemble(
                (mode.title, "bold"),
                (f"  {mode.scroll_offset + 1}-{last} of {len(mode.lines)}", "dim"),
            )
        )
