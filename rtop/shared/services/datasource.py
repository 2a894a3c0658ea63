"""Pull interface over the read-only data collaborators."""

from __future__ import annotations

from typing import Protocol

from rtop.engine.config import RtopConfig

from . import log_files, processes, systemd
from .log_files import LogEntry
from .processes import ProcessRow
from .system_stats import SystemSnapshot, SystemStatsCollector
from .systemd import ServiceRow


class DataSource(Protocol):
    def snapshot(self) -> SystemSnapshot: ...
    def processes(self) -> list[ProcessRow]: ...
    def process_details(self, pid: int) -> str: ...
    def services(self) -> list[ServiceRow]: ...
    def service_status(self, unit: str) -> str: ...
    def log_files(self) -> list[LogEntry]: ...
    def journal_files(self) -> list[LogEntry]: ...


class SystemDataSource:
    """Reads the live system through psutil, systemctl and the log tree."""

    def __init__(self, config: RtopConfig) -> None:
        self.config = config
        self._stats = SystemStatsCollector()

    def snapshot(self) -> SystemSnapshot:
        return self._stats.snapshot()

    def processes(self) -> list[ProcessRow]:
        return processes.list_processes()

    def process_details(self, pid: int) -> str:
        return processes.process_details(pid)

    def services(self) -> list[ServiceRow]:
        return systemd.list_services()

    def service_status(self, unit: str) -> str:
        return systemd.service_status(unit)

    def log_files(self) -> list[LogEntry]:
        return log_files.list_log_files(self.config.log_root, self.config.journal_root)

    def journal_files(self) -> list[LogEntry]:
        return log_files.list_journal_files(self.config.journal_root)
