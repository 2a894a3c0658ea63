"""System statistics for the dashboard tab.

Every reading is best-effort: a failing probe is logged and leaves its
fields at their zero defaults instead of breaking the tick.
"""

from __future__ import annotations

import logging
import socket
import time
from dataclasses import dataclass, field

import psutil

from .gpu import GpuInfo, detect_gpus

logger = logging.getLogger(__name__)

# Pseudo filesystems that only clutter the disk panel.
_SKIP_FSTYPES = frozenset({"squashfs", "tmpfs", "devtmpfs", "overlay", "proc", "sysfs"})


@dataclass(frozen=True)
class DiskUsage:
    mountpoint: str
    total: int
    used: int
    percent: float


@dataclass(frozen=True)
class SystemSnapshot:
    """One tick of dashboard metrics."""

    hostname: str = ""
    uptime_seconds: float = 0.0
    cpu_percent: float = 0.0
    cpu_per_core: tuple[float, ...] = ()
    load_avg: tuple[float, float, float] = (0.0, 0.0, 0.0)
    mem_total: int = 0
    mem_used: int = 0
    mem_percent: float = 0.0
    swap_total: int = 0
    swap_used: int = 0
    swap_percent: float = 0.0
    disks: tuple[DiskUsage, ...] = ()
    net_rx_rate: float = 0.0
    net_tx_rate: float = 0.0
    gpus: tuple[GpuInfo, ...] = field(default_factory=tuple)


class NetRateTracker:
    """Turns psutil's cumulative interface counters into bytes per second."""

    def __init__(self, clock=time.monotonic) -> None:
        self._clock = clock
        self._last: tuple[float, int, int] | None = None

    def sample(self, recv: int, sent: int) -> tuple[float, float]:
        now = self._clock()
        last, self._last = self._last, (now, recv, sent)
        if last is None:
            return 0.0, 0.0
        elapsed = now - last[0]
        if elapsed <= 0:
            return 0.0, 0.0
        # Counters reset when an interface goes away; never report negative rates.
        rx = max(0, recv - last[1]) / elapsed
        tx = max(0, sent - last[2]) / elapsed
        return rx, tx


def disk_usages() -> tuple[DiskUsage, ...]:
    disks: list[DiskUsage] = []
    try:
        partitions = psutil.disk_partitions(all=False)
    except Exception as e:
        logger.warning("Failed to list disk partitions: %s", e)
        return ()
    seen: set[str] = set()
    for part in partitions:
        if part.fstype in _SKIP_FSTYPES or part.device in seen:
            continue
        seen.add(part.device)
        try:
            usage = psutil.disk_usage(part.mountpoint)
        except (PermissionError, OSError):
            continue
        disks.append(DiskUsage(part.mountpoint, usage.total, usage.used, usage.percent))
    return tuple(disks)


class SystemStatsCollector:
    """Collects ``SystemSnapshot`` values; GPU probing is cached."""

    def __init__(self, gpu_refresh_seconds: float = 30.0) -> None:
        self._net = NetRateTracker()
        self._gpus: tuple[GpuInfo, ...] = ()
        self._gpu_checked = 0.0
        self._gpu_refresh = gpu_refresh_seconds
        self._hostname = socket.gethostname()
        # The first cpu_percent(interval=None) call only primes psutil.
        try:
            psutil.cpu_percent(interval=None, percpu=True)
        except Exception as e:
            logger.debug("CPU priming failed: %s", e)

    def snapshot(self) -> SystemSnapshot:
        values: dict[str, object] = {"hostname": self._hostname}
        try:
            per_core = psutil.cpu_percent(interval=None, percpu=True)
            values["cpu_per_core"] = tuple(per_core)
            values["cpu_percent"] = sum(per_core) / len(per_core) if per_core else 0.0
            values["load_avg"] = tuple(psutil.getloadavg())
            values["uptime_seconds"] = max(0.0, time.time() - psutil.boot_time())
        except Exception as e:
            logger.warning("Failed to get CPU stats: %s", e)
        try:
            mem = psutil.virtual_memory()
            swap = psutil.swap_memory()
            values.update(
                mem_total=mem.total,
                mem_used=mem.used,
                mem_percent=mem.percent,
                swap_total=swap.total,
                swap_used=swap.used,
                swap_percent=swap.percent,
            )
        except Exception as e:
            logger.warning("Failed to get memory stats: %s", e)
        try:
            net = psutil.net_io_counters()
            values["net_rx_rate"], values["net_tx_rate"] = self._net.sample(
                net.bytes_recv, net.bytes_sent,
            )
        except Exception as e:
            logger.warning("Failed to get network stats: %s", e)
        values["disks"] = disk_usages()
        values["gpus"] = self._cached_gpus()
        return SystemSnapshot(**values)  # type: ignore[arg-type]

    def _cached_gpus(self) -> tuple[GpuInfo, ...]:
        now = time.monotonic()
        if not self._gpu_checked or now - self._gpu_checked >= self._gpu_refresh:
            self._gpu_checked = now
            self._gpus = tuple(detect_gpus())
        return self._gpus


def format_bytes(value: float) -> str:
    """Human-readable binary size: ``1536`` -> ``1.5K``."""
    for unit in ("B", "K", "M", "G", "T"):
        if abs(value) < 1024 or unit == "T":
            return f"{value:.0f}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}P"


def format_duration(seconds: float) -> str:
    total = int(seconds)
    days, rem = divmod(total, 86400)
    hours, rem = divmod(rem, 3600)
    minutes = rem // 60
    if days:
        return f"{days}d {hours:02d}h {minutes:02d}m"
    return f"{hours:02d}h {minutes:02d}m"
