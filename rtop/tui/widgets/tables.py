"""Read-only row tables for the process, service, log and journal tabs.

Selection lives in the event loop; these widgets only draw the window of
rows around it. They never take focus, so keys always reach the screen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from rich.console import RenderableType
from rich.table import Table
from rich.text import Text
from textual.widget import Widget

from rtop.shared.services.system_stats import format_bytes


@dataclass(frozen=True)
class Column:
    title: str
    cell: Callable[[Any], str]
    justify: str = "left"
    width: int | None = None
    ratio: int | None = None


def visible_window(selected: int, count: int, height: int) -> range:
    """Indices of the rows to draw so that *selected* stays on screen."""
    height = max(1, height)
    if count <= height:
        return range(count)
    start = min(max(0, selected - height // 2), count - height)
    return range(start, start + height)


class RowTable(Widget):
    can_focus = False

    def __init__(self, columns: Sequence[Column], empty_text: str = "No entries", **kwargs) -> None:
        super().__init__(**kwargs)
        self.columns = tuple(columns)
        self.empty_text = empty_text
        self._rows: list[Any] = []
        self._selected = 0

    @property
    def selected(self) -> int:
        return self._selected

    def show(self, rows: list[Any], selected: int) -> None:
        self._rows = rows
        self._selected = selected
        self.refresh()

    def render(self) -> RenderableType:
        if not self._rows:
            return Text(self.empty_text, style="dim italic")
        table = Table(expand=True, box=None, show_edge=False, pad_edge=False, header_style="bold cyan")
        for column in self.columns:
            table.add_column(
                column.title,
                justify=column.justify,  # type: ignore[arg-type]
                width=column.width,
                ratio=column.ratio,
                no_wrap=True,
                overflow="ellipsis",
            )
        # One line is taken by the header.
        for index in visible_window(self._selected, len(self._rows), self.size.height - 1):
            row = self._rows[index]
            table.add_row(
                *(column.cell(row) for column in self.columns),
                style="reverse" if index == self._selected else None,
            )
        return table


PROCESS_COLUMNS = (
    Column("PID", lambda r: str(r.pid), "right", width=7),
    Column("USER", lambda r: r.user, width=10),
    Column("CPU%", lambda r: f"{r.cpu_percent:.1f}", "right", width=6),
    Column("MEM%", lambda r: f"{r.memory_percent:.1f}", "right", width=6),
    Column("RSS", lambda r: format_bytes(r.rss), "right", width=8),
    Column("S", lambda r: r.status[:1].upper(), width=2),
    Column("NAME", lambda r: r.name, ratio=1),
)

SERVICE_COLUMNS = (
    Column("UNIT", lambda r: r.unit, ratio=2),
    Column("LOAD", lambda r: r.load, width=9),
    Column("ACTIVE", lambda r: r.active, width=9),
    Column("SUB", lambda r: r.sub, width=9),
    Column("DESCRIPTION", lambda r: r.description, ratio=3),
)

LOG_COLUMNS = (
    Column("NAME", lambda r: r.name, ratio=1),
    Column("SIZE", lambda r: format_bytes(r.size), "right", width=8),
    Column("MODIFIED", lambda r: r.modified_label, width=16),
)


def process_table(**kwargs) -> RowTable:
    return RowTable(PROCESS_COLUMNS, empty_text="Collecting processes…", **kwargs)


def service_table(**kwargs) -> RowTable:
    return RowTable(SERVICE_COLUMNS, empty_text="No services (is systemd running?)", **kwargs)


def log_table(empty_text: str, **kwargs) -> RowTable:
    return RowTable(LOG_COLUMNS, empty_text=empty_text, **kwargs)
