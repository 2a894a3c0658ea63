"""Shared fakes for the event loop and TUI tests."""

from __future__ import annotations

import itertools

import pytest

from rtop.engine.config import RtopConfig
from rtop.engine.errors import SpawnError
from rtop.engine.privileged import Denied, PermissionRequired, ReadFile, RunCommand, Succeeded
from rtop.engine.pty_session import ShellCommand
from rtop.shared.services.log_files import LogEntry
from rtop.shared.services.processes import ProcessRow
from rtop.shared.services.system_stats import SystemSnapshot
from rtop.shared.services.systemd import ServiceRow

_pids = itertools.count(4000)


class FakeSession:
    """Stands in for PtySession: records writes, replays queued output."""

    instances: list["FakeSession"] = []
    fail_with: str | None = None

    def __init__(self, rows: int = 24, cols: int = 80, *, queue_chunks: int = 256, grace_seconds: float = 1.0):
        self.size = (rows, cols)
        self.written = bytearray()
        self.outbox: list[bytes] = []
        self.running = False
        self.exit_status: int | None = None
        self.terminate_calls = 0
        self.pid: int | None = None
        self.resizes: list[tuple[int, int]] = []
        FakeSession.instances.append(self)

    @property
    def closed(self) -> bool:
        return self.terminate_calls > 0

    def start(self, shell: ShellCommand | None = None) -> int:
        if FakeSession.fail_with:
            raise SpawnError(shell.path if shell else "sh", FakeSession.fail_with)
        self.running = True
        self.pid = next(_pids)
        return self.pid

    def write(self, data: bytes) -> None:
        if self.running:
            self.written.extend(data)

    def flush(self) -> None:
        pass

    def resize(self, rows: int, cols: int) -> None:
        self.size = (rows, cols)
        self.resizes.append((rows, cols))

    def poll_output(self):
        while self.outbox:
            yield self.outbox.pop(0)

    def exit(self, status: int) -> None:
        self.running = False
        self.exit_status = status

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.running = False


class FakeDataSource:
    def __init__(self) -> None:
        self.process_rows = [
            ProcessRow(pid=100 + i, name=f"proc{i}", user="root", cpu_percent=50.0 - i,
                       memory_percent=1.0, rss=1024 * i, status="running")
            for i in range(25)
        ]
        self.service_rows = [
            ServiceRow("cron.service", "loaded", "active", "running", "Regular background program processing daemon"),
            ServiceRow("ssh.service", "loaded", "active", "running", "OpenBSD Secure Shell server"),
        ]
        self.logs = [
            LogEntry(name="auth.log", path="/var/log/auth.log", size=2048, modified=0.0),
            LogEntry(name="syslog", path="/var/log/syslog", size=4096, modified=0.0),
        ]
        self.journals = [
            LogEntry(name="system.journal", path="/var/log/journal/abc/system.journal", size=8192, modified=0.0),
        ]
        self.snapshots = 0

    def snapshot(self) -> SystemSnapshot:
        self.snapshots += 1
        return SystemSnapshot(hostname="testhost", cpu_percent=12.5, cpu_per_core=(10.0, 15.0))

    def processes(self) -> list[ProcessRow]:
        return list(self.process_rows)

    def process_details(self, pid: int) -> str:
        return f"Name: proc\nPID: {pid}"

    def services(self) -> list[ServiceRow]:
        return list(self.service_rows)

    def service_status(self, unit: str) -> str:
        return f"● {unit}\n   Active: active (running)"

    def log_files(self) -> list[LogEntry]:
        return list(self.logs)

    def journal_files(self) -> list[LogEntry]:
        return list(self.journals)


class FakeBroker:
    """Broker double: paths in ``protected`` need the password ``secret``."""

    def __init__(self, password: str = "secret") -> None:
        self.password = password
        self.protected: set[str] = {"/var/log/auth.log"}
        self.escalations: list[tuple[object, bytes]] = []
        self.buffers = []

    def read_file(self, path: str, name: str = ""):
        if path in self.protected:
            return PermissionRequired(ReadFile(path, name))
        return Succeeded(f"contents of {path}")

    def run_command(self, argv, name: str = ""):
        return PermissionRequired(RunCommand(tuple(argv), name))

    def escalate(self, target, password):
        payload = password.stdin_payload()
        self.escalations.append((target, bytes(payload)))
        self.buffers.append(password)
        password.clear()
        if bytes(payload) == f"{self.password}\n".encode():
            return Succeeded(f"privileged contents of {target.title}")
        return Denied()


@pytest.fixture
def fake_sessions():
    FakeSession.instances = []
    FakeSession.fail_with = None
    yield FakeSession
    FakeSession.instances = []
    FakeSession.fail_with = None


@pytest.fixture
def data_source() -> FakeDataSource:
    return FakeDataSource()


@pytest.fixture
def broker() -> FakeBroker:
    return FakeBroker()


@pytest.fixture
def make_loop(fake_sessions, data_source, broker, tmp_path):
    from rtop.engine.event_loop import EventLoop

    def _make(**overrides) -> EventLoop:
        config = RtopConfig(log_file=str(tmp_path / "rtop.log")).with_overrides(**overrides)
        return EventLoop(
            config,
            data_source=data_source,
            broker=broker,
            session_factory=fake_sessions,
            shell_command=ShellCommand("/bin/sh", ("-i",)),
        )

    return _make
