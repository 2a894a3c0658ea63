"""Process table rows and per-process detail text."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import psutil

logger = logging.getLogger(__name__)

_ATTRS = ["pid", "name", "username", "cpu_percent", "memory_percent", "memory_info", "status"]


@dataclass(frozen=True)
class ProcessRow:
    pid: int
    name: str
    user: str
    cpu_percent: float
    memory_percent: float
    rss: int
    status: str


def list_processes() -> list[ProcessRow]:
    """All visible processes, busiest CPU first."""
    rows: list[ProcessRow] = []
    for proc in psutil.process_iter(_ATTRS):
        try:
            info = proc.info
            mem = info.get("memory_info")
            rows.append(
                ProcessRow(
                    pid=info["pid"],
                    name=info.get("name") or "?",
                    user=info.get("username") or "?",
                    cpu_percent=info.get("cpu_percent") or 0.0,
                    memory_percent=info.get("memory_percent") or 0.0,
                    rss=mem.rss if mem else 0,
                    status=info.get("status") or "",
                )
            )
        except (psutil.NoSuchProcess, psutil.AccessDenied, KeyError):
            continue
    rows.sort(key=lambda r: (-r.cpu_percent, r.pid))
    return rows


def process_details(pid: int) -> str:
    """Multi-line description of *pid* for the details popup."""
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            lines = [
                f"Name: {proc.name()}",
                f"PID: {pid}",
                f"PPID: {proc.ppid()}",
                f"State: {proc.status()}",
                f"User: {_safe(proc.username)}",
                f"Threads: {proc.num_threads()}",
                f"Nice: {_safe(proc.nice)}",
            ]
            mem = proc.memory_info()
            lines.append(f"VmRSS: {mem.rss // 1024} kB")
            lines.append(f"VmSize: {mem.vms // 1024} kB")
            lines.append(f"Exe: {_safe(proc.exe)}")
            lines.append(f"Cwd: {_safe(proc.cwd)}")
            cmdline = _safe(lambda: " ".join(proc.cmdline()))
            if cmdline:
                lines.append(f"Cmdline: {cmdline}")
            lines.append(f"FDs: {_safe(proc.num_fds)}")
    except psutil.NoSuchProcess:
        return f"Process {pid} no longer exists."
    except psutil.Error as e:
        logger.warning("Failed to read details for pid %s: %s", pid, e)
        return f"Process details unavailable for PID {pid}: {e}"
    return "\n".join(lines)


def _safe(getter) -> str:
    """Fields other users' processes hide from us read as ``-``."""
    try:
        value = getter()
    except (psutil.AccessDenied, psutil.ZombieProcess, OSError):
        return "-"
    return str(value)
