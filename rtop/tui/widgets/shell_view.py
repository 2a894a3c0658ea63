"""Shell view: the emulated terminal screen of the shell tab.

The event loop feeds shell output into a ``TerminalScreen``; this widget
turns its pyte cells into Rich text, topping the screen up with history
when the view is taller than the pseudo-terminal.
"""

from __future__ import annotations

from functools import lru_cache

from rich.color import Color, ColorParseError
from rich.style import Style
from rich.text import Text
from textual.widget import Widget

from rtop.engine.terminal_screen import TerminalScreen

_CURSOR = Style(reverse=True)
# pyte keeps the old xterm name for yellow.
_PYTE_NAMES = {"brown": "yellow"}


def rich_color(value: str | None) -> str | None:
    """Rich colour name for a pyte cell colour, None for the default."""
    if not value or value == "default":
        return None
    value = value.lstrip("#")
    if len(value) == 6:
        try:
            int(value, 16)
        except ValueError:
            pass
        else:
            return f"#{value}"
    if value.startswith("bright"):
        base = value[len("bright"):]
        name = f"bright_{_PYTE_NAMES.get(base, base)}"
    else:
        name = _PYTE_NAMES.get(value, value)
    try:
        Color.parse(name)
    except ColorParseError:
        return None
    return name


@lru_cache(maxsize=1024)
def _cell_style(
    fg: str, bg: str, bold: bool, italics: bool, underscore: bool,
    strikethrough: bool, reverse: bool,
) -> Style:
    return Style(
        color=rich_color(fg),
        bgcolor=rich_color(bg),
        bold=bold or None,
        italic=italics or None,
        underline=underscore or None,
        strike=strikethrough or None,
        reverse=reverse or None,
    )


def _is_blank(char) -> bool:
    return char.data == " " and char.bg == "default" and not char.reverse


def row_to_text(row, columns: int, cursor_x: int | None = None) -> Text:
    """One pyte row as styled text, trailing blank cells dropped."""
    last = columns - 1
    while last >= 0 and last != cursor_x and _is_blank(row[last]):
        last -= 1
    text = Text(no_wrap=True, end="")
    run: list[str] = []
    run_style: Style | None = None
    for x in range(last + 1):
        char = row[x]
        style = _cell_style(
            char.fg, char.bg, char.bold, char.italics, char.underscore,
            char.strikethrough, char.reverse,
        )
        if x == cursor_x:
            style = style + _CURSOR
        if style != run_style and run:
            text.append("".join(run), run_style)
            run = []
        run_style = style
        run.append(char.data or "")
    if run:
        text.append("".join(run), run_style)
    return text


def render_screen(terminal: TerminalScreen, rows: int) -> Text:
    """The last *rows* lines of the terminal: history above the screen."""
    rows = max(1, rows)
    screen_lines, columns = terminal.size
    cursor = terminal.cursor
    lines = [
        row_to_text(row, columns, cursor[1] if cursor and cursor[0] == y else None)
        for y, row in enumerate(terminal.screen_rows())
    ]
    spare = rows - screen_lines
    if spare > 0:
        history = terminal.history_rows()[-spare:]
        lines = [row_to_text(row, columns) for row in history] + lines
    last = cursor[0] + max(0, len(lines) - screen_lines) if cursor else -1
    while len(lines) > last + 1 and not lines[-1].plain:
        lines.pop()
    return Text("\n", no_wrap=True).join(lines[-rows:])


class ShellView(Widget):
    can_focus = False

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._terminal: TerminalScreen | None = None
        self._version = -1
        self._notice = ""

    def show(self, terminal: TerminalScreen, notice: str) -> None:
        if terminal is self._terminal and terminal.version == self._version and notice == self._notice:
            return
        self._terminal = terminal
        self._version = terminal.version
        self._notice = notice
        self.refresh()

    def render(self) -> Text:
        rows = self.size.height
        if self._terminal is None:
            return Text(self._notice, style="bold yellow")
        if self._notice:
            body = render_screen(self._terminal, max(1, rows - 2))
            if body.plain:
                body.append("\n\n")
            body.append(self._notice, style="bold yellow")
            return body
        return render_screen(self._terminal, rows)
