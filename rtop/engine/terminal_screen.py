"""Terminal emulation for the shell tab.

Shell output is fed through a ``pyte`` screen, so cursor movement, line
editing and clear-screen land the way a real terminal would draw them.
Lines that scroll off the top are kept in the screen's history.
"""
from __future__ import annotations

import logging

import pyte
from pyte.screens import HistoryScreen

logger = logging.getLogger(__name__)


class _ShellScreen(HistoryScreen):
    """HistoryScreen that keeps the replies it owes the shell.

    Cursor position reports and device attributes are answered through
    ``write_process_input``; pyte's default drops them.
    """

    def __init__(self, columns: int, lines: int, history: int) -> None:
        super().__init__(columns, lines, history=history)
        self.replies = bytearray()

    def write_process_input(self, data: str) -> None:
        self.replies.extend(data.encode("utf-8"))


def row_text(row, columns: int) -> str:
    """Plain characters of one pyte row, trailing blanks removed."""
    return "".join(row[x].data for x in range(columns)).rstrip()


class TerminalScreen:
    """The shell's screen plus scrollback, sized like the pseudo-terminal."""

    def __init__(self, rows: int = 24, cols: int = 80, *, history: int = 5000) -> None:
        self._screen = _ShellScreen(max(1, cols), max(1, rows), max(1, history))
        self._stream = pyte.ByteStream(self._screen)
        # Bumped on every change so views can skip identical redraws.
        self.version = 0

    def __repr__(self) -> str:
        rows, cols = self.size
        return f"<TerminalScreen {rows}x{cols} history={len(self._screen.history.top)}>"

    @property
    def size(self) -> tuple[int, int]:
        return self._screen.lines, self._screen.columns

    @property
    def cursor(self) -> tuple[int, int] | None:
        """(row, column) of the visible cursor, None while the shell hides it."""
        cursor = self._screen.cursor
        if cursor.hidden:
            return None
        return cursor.y, cursor.x

    def feed(self, data: bytes) -> bytes:
        """Apply shell output; return the bytes the terminal must answer with."""
        if not data:
            return b""
        self._stream.feed(data)
        self.version += 1
        replies = bytes(self._screen.replies)
        self._screen.replies.clear()
        return replies

    def resize(self, rows: int, cols: int) -> None:
        rows, cols = max(1, rows), max(1, cols)
        if (rows, cols) == self.size:
            return
        self._screen.resize(lines=rows, columns=cols)
        self.version += 1
        logger.debug("Terminal screen resized to %sx%s", rows, cols)

    def reset(self) -> None:
        """Blank screen and empty history, for a fresh shell."""
        self._screen.reset()
        self._screen.replies.clear()
        self.version += 1

    def history_rows(self) -> list:
        return list(self._screen.history.top)

    def screen_rows(self) -> list:
        buffer = self._screen.buffer
        return [buffer[y] for y in range(self._screen.lines)]

    def lines(self) -> list[str]:
        """History then screen as plain text, without trailing empty lines."""
        columns = self._screen.columns
        out = [row_text(row, columns) for row in self.history_rows()]
        out.extend(row_text(row, columns) for row in self.screen_rows())
        while out and not out[-1]:
            out.pop()
        return out

    def text(self) -> str:
        return "\n".join(self.lines())
