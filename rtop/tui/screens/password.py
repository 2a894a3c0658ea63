"""Masked password prompt for protected logs and journals."""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual import events
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Static
from rich.text import Text

from rtop.engine.modes import KeyPress, Paste, PasswordPrompt

if TYPE_CHECKING:
    from rtop.engine.event_loop import EventLoop


class PasswordScreen(ModalScreen[None]):
    """Collects a sudo password one key at a time.

    Keys go straight to the event loop, which appends them to its
    password buffer. This screen only ever sees the character count.
    """

    CSS_PATH = "../styles/modal.tcss"

    def compose(self) -> ComposeResult:
        with Vertical(id="password-dialog"):
            yield Static("", id="password-title")
            yield Static("", id="password-field")
            yield Static("", id="password-error")
            yield Static("Enter submit · Esc cancel", id="password-hint")

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
        mode = engine.mode
        if not isinstance(mode, PasswordPrompt):
            return
        attempts = engine.config.max_password_attempts
        self.query_one("#password-title", Static).update(
            Text.assemble(
                ("Password required", "bold"),
                f" to read {mode.target.title}",
                (f"  (attempt {mode.attempt} of {attempts})", "dim"),
            )
        )
        self.query_one("#password-field", Static).update(
            Text("Password: ") + Text("*" * mode.typed, style="bold")
        )
        self.query_one("#password-error", Static).update(
            Text(mode.error, style="bold red") if mode.error else Text("")
        )
