"""Pseudo-terminal backed shell session.

One ``PtySession`` owns the master descriptor, the child shell and a
single background reader thread. The reader turns blocking reads on the
master into chunks on a bounded FIFO queue; the UI loop drains that
queue with ``poll_output()`` and never blocks on shell output.

Termination is unconditional and idempotent: SIGHUP to the shell's
process group, a bounded wait, then SIGKILL. Live sessions are tracked in
a weak registry so an ``atexit`` hook can reap any shell left running.
"""
from __future__ import annotations

import atexit
import errno
import fcntl
import logging
import os
import pty
import pwd
import queue
import select
import shutil
import signal
import struct
import termios
import threading
import time
import weakref
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .errors import PtyIOError, SpawnError

logger = logging.getLogger(__name__)

_READ_CHUNK = 4096
_READER_POLL_SECONDS = 0.2
# Hang-up usually precedes the zombie by a moment.
_REAP_GRACE_SECONDS = 0.2
_EOF = None  # queue sentinel: the child side hung up

_live_sessions: "weakref.WeakSet[PtySession]" = weakref.WeakSet()


class SessionState(str, Enum):
    UNSTARTED = "unstarted"
    RUNNING = "running"
    EXITED = "exited"


@dataclass(frozen=True)
class ShellCommand:
    """Resolved shell binary plus its arguments."""
    path: str
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        return [self.path, *self.args]


def default_shell_and_args(
    args: tuple[str, ...] = ("-i", "-l"),
) -> ShellCommand:
    """Resolve the user's interactive shell.

    Prefers ``$SHELL``, then the passwd entry of the current uid, then
    ``/bin/sh``.
    """
    shell = os.environ.get("SHELL", "").strip()
    if not shell:
        try:
            shell = pwd.getpwuid(os.getuid()).pw_shell.strip()
        except KeyError:
            shell = ""
    return ShellCommand(path=shell or "/bin/sh", args=tuple(args))


def _resolve_binary(shell: str) -> str:
    if os.sep in shell:
        if os.path.isfile(shell) and os.access(shell, os.X_OK):
            return shell
        raise SpawnError(shell, "not an executable file")
    found = shutil.which(shell)
    if not found:
        raise SpawnError(shell, "not found on PATH")
    return found


class PtySession:
    """An interactive shell attached to a pseudo-terminal.

    Exactly one of these is alive per process; the event loop creates it
    when the shell tab is first entered.
    """

    def __init__(
        self,
        rows: int = 24,
        cols: int = 80,
        *,
        queue_chunks: int = 256,
        grace_seconds: float = 1.0,
    ) -> None:
        self.state = SessionState.UNSTARTED
        self.pid: int | None = None
        self.exit_status: int | None = None
        self.size = (max(1, rows), max(1, cols))
        self._grace_seconds = grace_seconds
        self._master_fd: int | None = None
        self._output: queue.Queue[bytes | None] = queue.Queue(
            maxsize=max(1, queue_chunks)
        )
        self._pending = bytearray()
        self._stop = threading.Event()
        self._reader: threading.Thread | None = None
        self._reader_error: str | None = None
        self._closed = False

    def __repr__(self) -> str:
        return f"<PtySession state={self.state.value} pid={self.pid} size={self.size}>"

    @property
    def running(self) -> bool:
        return self.state is SessionState.RUNNING

    @property
    def closed(self) -> bool:
        return self._closed

    # ── lifecycle ─────────────────────────────────────────────

    def start(self, shell: ShellCommand | None = None) -> int:
        """Fork the shell onto a new pseudo-terminal; return its pid."""
        if self.state is not SessionState.UNSTARTED:
            raise SpawnError(
                shell.path if shell else "<shell>",
                f"session already {self.state.value}",
            )
        command = shell or default_shell_and_args()
        binary = _resolve_binary(command.path)
        argv = [binary, *command.args]
        env = dict(os.environ)
        env.setdefault("TERM", "xterm-256color")
        env["RTOP"] = "1"

        try:
            pid, master_fd = pty.fork()
        except OSError as exc:
            raise SpawnError(binary, f"pseudo-terminal allocation failed: {exc}") from exc

        if pid == 0:  # child
            try:
                os.execve(binary, argv, env)
            finally:
                os._exit(127)

        self.pid = pid
        self._master_fd = master_fd
        os.set_blocking(master_fd, False)
        self.state = SessionState.RUNNING
        self.resize(*self.size)
        self._reader = threading.Thread(
            target=self._read_loop,
            name=f"pty-reader-{pid}",
            daemon=True,
        )
        self._reader.start()
        _live_sessions.add(self)
        logger.info("Shell started pid=%s argv=%s size=%s", pid, argv, self.size)
        return pid

    def terminate(self) -> None:
        """Stop the child and release both descriptors. Safe to repeat."""
        if self._closed:
            return
        self._closed = True
        self._stop.set()

        if self.pid is not None and self.exit_status is None:
            self._signal(signal.SIGHUP)
            if not self._wait_for_exit(self._grace_seconds):
                logger.warning("Shell pid=%s ignored SIGHUP; sending SIGKILL", self.pid)
                self._signal(signal.SIGKILL)
                self._wait_for_exit(1.0)

        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join(timeout=1.0)

        if self._master_fd is not None:
            try:
                os.close(self._master_fd)
            except OSError:
                logger.debug("Closing master fd failed", exc_info=True)
            self._master_fd = None
        self._pending.clear()
        if self.state is SessionState.RUNNING:
            self.state = SessionState.EXITED
        _live_sessions.discard(self)
        logger.info("Shell session closed pid=%s status=%s", self.pid, self.exit_status)

    # ── I/O ───────────────────────────────────────────────────

    def write(self, data: bytes) -> None:
        """Queue bytes for the shell and push as many as the pipe accepts.

        Whatever the kernel refuses now is retried by ``flush()`` on the
        next tick, in order.
        """
        if not data or not self.running:
            return
        self._pending.extend(data)
        self.flush()

    def flush(self) -> None:
        while self._pending and self.running and self._master_fd is not None:
            try:
                written = os.write(self._master_fd, self._pending)
            except BlockingIOError:
                return
            except InterruptedError:
                continue
            except OSError as exc:
                logger.info("Write to shell failed (%s); treating as exit", exc)
                self._pending.clear()
                self._mark_exited()
                return
            del self._pending[:written]

    @property
    def pending_bytes(self) -> int:
        return len(self._pending)

    def resize(self, rows: int, cols: int) -> None:
        """Tell the pseudo-terminal (and so the shell) its new size."""
        rows, cols = max(1, int(rows)), max(1, int(cols))
        self.size = (rows, cols)
        if self._master_fd is None:
            return
        try:
            fcntl.ioctl(
                self._master_fd,
                termios.TIOCSWINSZ,
                struct.pack("HHHH", rows, cols, 0, 0),
            )
        except OSError:
            logger.debug("TIOCSWINSZ failed for %sx%s", rows, cols, exc_info=True)

    def window_size(self) -> tuple[int, int] | None:
        """Size the kernel currently reports for the pseudo-terminal."""
        if self._master_fd is None:
            return None
        try:
            packed = fcntl.ioctl(
                self._master_fd, termios.TIOCGWINSZ, b"\x00" * 8
            )
        except OSError:
            return None
        rows, cols, _, _ = struct.unpack("HHHH", packed)
        return rows, cols

    def poll_output(self) -> Iterator[bytes]:
        """Yield the chunks the reader has queued so far, oldest first.

        Never blocks. When the child side has hung up the session moves
        to EXITED after the remaining chunks are yielded. Raises
        PtyIOError only when the reader hit an unexpected read error.
        """
        while True:
            try:
                chunk = self._output.get_nowait()
            except queue.Empty:
                break
            if chunk is _EOF:
                self._mark_exited()
                break
            yield chunk
        if self.running and self._reap(block=False) and self._output.empty():
            # Shell is gone even if a background job still holds the slave.
            self._mark_exited()
        if self._reader_error is not None:
            reason, self._reader_error = self._reader_error, None
            raise PtyIOError(reason)

    # ── internals ─────────────────────────────────────────────

    def _read_loop(self) -> None:
        fd = self._master_fd
        while not self._stop.is_set():
            try:
                ready, _, _ = select.select([fd], [], [], _READER_POLL_SECONDS)
            except (OSError, ValueError):
                break
            if not ready:
                continue
            try:
                data = os.read(fd, _READ_CHUNK)
            except BlockingIOError:
                continue
            except OSError as exc:
                # Linux reports EIO on the master once the slave side is gone.
                if exc.errno not in (errno.EIO, errno.EBADF):
                    self._reader_error = str(exc)
                break
            if not data:
                break
            if not self._enqueue(data):
                return
        self._enqueue(_EOF)

    def _enqueue(self, item: bytes | None) -> bool:
        while not self._stop.is_set():
            try:
                self._output.put(item, timeout=_READER_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def _mark_exited(self) -> None:
        if self.state is SessionState.RUNNING:
            self._wait_for_exit(_REAP_GRACE_SECONDS)
            self.state = SessionState.EXITED
            logger.info("Shell pid=%s exited status=%s", self.pid, self.exit_status)

    def _reap(self, block: bool) -> bool:
        if self.pid is None or self.exit_status is not None:
            return True
        try:
            pid, status = os.waitpid(self.pid, 0 if block else os.WNOHANG)
        except ChildProcessError:
            self.exit_status = -1
            return True
        if pid == 0:
            return False
        self.exit_status = os.waitstatus_to_exitcode(status)
        return True

    def _wait_for_exit(self, timeout: float) -> bool:
        deadline = time.monotonic() + timeout
        while True:
            if self._reap(block=False):
                return True
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.02)

    def _signal(self, sig: signal.Signals) -> None:
        try:
            # forkpty makes the shell a session (and group) leader
            os.killpg(self.pid, sig)
        except ProcessLookupError:
            pass
        except PermissionError:
            try:
                os.kill(self.pid, sig)
            except ProcessLookupError:
                pass


@atexit.register
def _terminate_live_sessions() -> None:
    for session in list(_live_sessions):
        try:
            session.terminate()
        except Exception:
            logger.exception("Failed to terminate shell session at exit")
