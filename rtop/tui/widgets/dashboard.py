"""Dashboard tab: CPU, memory, load, network, disks and GPUs."""

from __future__ import annotations

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text
from textual.widget import Widget

from rtop.shared.services.system_stats import SystemSnapshot, format_bytes

BAR_WIDTH = 24


def usage_bar(percent: float, width: int = BAR_WIDTH) -> Text:
    percent = min(max(percent, 0.0), 100.0)
    filled = round(width * percent / 100)
    if percent >= 90:
        color = "red"
    elif percent >= 70:
        color = "yellow"
    else:
        color = "green"
    bar = Text("█" * filled, style=color)
    bar.append("░" * (width - filled), style="dim")
    bar.append(f" {percent:5.1f}%")
    return bar


class DashboardPanel(Widget):
    can_focus = False

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.snapshot: SystemSnapshot | None = None

    def show(self, snapshot: SystemSnapshot | None) -> None:
        if snapshot is self.snapshot:
            return
        self.snapshot = snapshot
        self.refresh()

    def render(self) -> RenderableType:
        snap = self.snapshot
        if snap is None:
            return Text("Collecting system statistics…", style="dim italic")

        summary = Table.grid(padding=(0, 2))
        summary.add_column(style="bold cyan", no_wrap=True)
        summary.add_column()
        summary.add_row("CPU", usage_bar(snap.cpu_percent))
        summary.add_row(
            "Memory",
            usage_bar(snap.mem_percent).append(
                f"  {format_bytes(snap.mem_used)} / {format_bytes(snap.mem_total)}", style="dim",
            ),
        )
        summary.add_row(
            "Swap",
            usage_bar(snap.swap_percent).append(
                f"  {format_bytes(snap.swap_used)} / {format_bytes(snap.swap_total)}", style="dim",
            ),
        )
        load1, load5, load15 = snap.load_avg
        summary.add_row("Load", Text(f"{load1:.2f} {load5:.2f} {load15:.2f}"))
        summary.add_row(
            "Network",
            Text(f"rx {format_bytes(snap.net_rx_rate)}/s   tx {format_bytes(snap.net_tx_rate)}/s"),
        )

        cores = Table.grid(padding=(0, 2))
        columns = 2 if len(snap.cpu_per_core) > 8 else 1
        for _ in range(columns * 2):
            cores.add_column(no_wrap=True)
        row: list[RenderableType] = []
        for index, percent in enumerate(snap.cpu_per_core):
            row.extend([Text(f"cpu{index}", style="dim"), usage_bar(percent, width=16)])
            if len(row) == columns * 2:
                cores.add_row(*row)
                row = []
        if row:
            cores.add_row(*row, *([""] * (columns * 2 - len(row))))

        disks = Table(box=None, header_style="bold cyan", pad_edge=False)
        disks.add_column("Mount")
        disks.add_column("Usage")
        disks.add_column("Used / Total", justify="right", style="dim")
        for disk in snap.disks:
            disks.add_row(
                disk.mountpoint,
                usage_bar(disk.percent, width=16),
                f"{format_bytes(disk.used)} / {format_bytes(disk.total)}",
            )

        parts: list[RenderableType] = [summary, Text(""), cores]
        if snap.disks:
            parts.extend([Text(""), disks])
        if snap.gpus:
            gpus = Table(box=None, header_style="bold cyan", pad_edge=False)
            gpus.add_column("GPU")
            gpus.add_column("Driver", style="dim")
            gpus.add_column("PCI", style="dim")
            gpus.add_column("Temp", justify="right")
            for gpu in snap.gpus:
                temp = f"{gpu.temp_c:.0f}°C" if gpu.temp_c is not None else "-"
                gpus.add_row(gpu.model, gpu.driver, gpu.pci_addr, temp)
            parts.extend([Text(""), gpus])
        return Group(*parts)
