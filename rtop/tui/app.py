"""rtop TUI: Textual application class."""

from __future__ import annotations

import logging
from pathlib import Path

from textual import events
from textual.app import App

from rtop.engine.event_loop import EventLoop
from rtop.engine.modes import Event, PasswordPrompt, PopupOpen, Resize
from rtop.tui.screens.main import MainScreen
from rtop.tui.screens.password import PasswordScreen
from rtop.tui.screens.popup import PopupScreen

logger = logging.getLogger(__name__)


class RtopApp(App, inherit_bindings=False):
    """System dashboard with an embedded shell and protected log viewers.

    The app owns no state of its own: the ``EventLoop`` holds the mode,
    the shell session and the view data, and the screen stack is kept in
    line with the mode after every event and tick.
    """

    TITLE = "rtop"
    CSS_PATH = Path("styles/app.tcss")
    ENABLE_COMMAND_PALETTE = False
    # No app bindings: every key, ctrl+q included, goes to the screens' on_key.
    BINDINGS = []

    def __init__(self, engine: EventLoop, tick_interval: float | None = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self.engine = engine
        self.tick_interval = tick_interval or engine.config.tick_interval_seconds

    def on_mount(self) -> None:
        self.push_screen(MainScreen())
        self.engine.dispatch(Resize(self.size.height, self.size.width))
        self.tick()
        self.set_interval(self.tick_interval, self.tick)

    def on_resize(self, event: events.Resize) -> None:
        self.handle(Resize(event.size.height, event.size.width))

    def on_unmount(self) -> None:
        self.engine.shutdown()

    async def action_quit(self) -> None:
        """Stop the shell before quitting."""
        self.engine.shutdown()
        await super().action_quit()

    def handle(self, event: Event) -> None:
        """Feed one input event to the engine and redraw."""
        try:
            self.engine.dispatch(event)
        except Exception:
            # A failing handler must not take the terminal down with it.
            logger.exception("Unhandled error dispatching %s", type(event).__name__)
        self.sync()

    def tick(self) -> None:
        try:
            self.engine.tick()
        except Exception:
            logger.exception("Unhandled error in tick")
        self.sync()

    def sync(self) -> None:
        if self.engine.quit_requested:
            self.engine.shutdown()
            self.exit()
            return
        mode = self.engine.mode
        if isinstance(mode, PopupOpen):
            wanted = PopupScreen
        elif isinstance(mode, PasswordPrompt):
            wanted = PasswordScreen
        else:
            wanted = None

        if isinstance(self.screen, (PopupScreen, PasswordScreen)) and type(self.screen) is not wanted:
            self.pop_screen()
        if wanted is not None and not isinstance(self.screen, wanted):
            self.push_screen(wanted())

        for screen in self.screen_stack:
            if isinstance(screen, (MainScreen, PopupScreen, PasswordScreen)) and screen.is_mounted:
                screen.refresh_view(self.engine)
