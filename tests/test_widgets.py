from __future__ import annotations

from rtop.tui.widgets.dashboard import usage_bar
from rtop.tui.widgets.tables import visible_window


def test_visible_window_keeps_selection_on_screen() -> None:
    assert visible_window(0, 5, 10) == range(5)
    assert visible_window(0, 100, 10) == range(0, 10)
    assert visible_window(50, 100, 10) == range(45, 55)
    assert visible_window(99, 100, 10) == range(90, 100)


def test_usage_bar() -> None:
    bar = usage_bar(50.0, width=10)
    assert bar.plain == "█████░░░░░  50.0%"
    assert usage_bar(150.0, width=4).plain == "████ 100.0%"
    assert usage_bar(-5.0, width=4).plain == "░░░░   0.0%"
