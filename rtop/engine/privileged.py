"""Password-gated reads of protected files and privileged commands.

A read is first attempted with the user's own rights. Only when the OS
refuses does the caller get ``PermissionRequired`` and collect a password;
``escalate`` then runs the read through ``sudo -S`` with the password on
the child's stdin. The password never appears in argv, the environment,
or the log, and the buffer is wiped before ``escalate`` returns.
"""
from __future__ import annotations

import logging
import os
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .password import PasswordBuffer, wipe

logger = logging.getLogger(__name__)

# sudo's wording when authentication fails (LC_ALL=C is forced below)
_AUTH_FAILURE_MARKERS = re.compile(
    r"incorrect password|sorry, try again|authentication failure"
    r"|no password was provided|a password is required",
    re.IGNORECASE,
)
_PERMISSION_MARKERS = re.compile(
    r"permission denied|insufficient permissions|operation not permitted"
    r"|not seeing messages from other users",
    re.IGNORECASE,
)


# ── targets ───────────────────────────────────────────────────


@dataclass(frozen=True)
class ReadFile:
    """Read the text of the file at ``path``."""
    path: str
    name: str = ""

    @property
    def title(self) -> str:
        return self.name or Path(self.path).name or self.path


@dataclass(frozen=True)
class RunCommand:
    """Run ``argv`` and show its standard output."""
    argv: tuple[str, ...]
    name: str = ""

    @property
    def title(self) -> str:
        return self.name or " ".join(self.argv)


Target = Union[ReadFile, RunCommand]


# ── outcomes ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Succeeded:
    content: str


@dataclass(frozen=True)
class PermissionRequired:
    target: Target


@dataclass(frozen=True)
class Denied:
    message: str = "Sorry, try again."


@dataclass(frozen=True)
class Failed:
    reason: str


Outcome = Union[Succeeded, PermissionRequired, Denied, Failed]


def cap_log_text(text: str, max_lines: int) -> str:
    """Keep only the last ``max_lines`` lines of *text*."""
    lines = text.splitlines()
    if len(lines) <= max_lines:
        return text
    return "\n".join(lines[-max_lines:])


def _first_line(text: str, fallback: str) -> str:
    for line in text.splitlines():
        line = line.strip()
        if line:
            return line
    return fallback


class PrivilegedAccessBroker:
    """Reads protected logs and journals, escalating through sudo on demand."""

    def __init__(
        self,
        sudo_path: str = "sudo",
        *,
        line_cap: int = 5000,
        max_read_bytes: int = 8 * 1024 * 1024,
    ) -> None:
        self.sudo_path = sudo_path
        self.line_cap = line_cap
        self.max_read_bytes = max_read_bytes

    def read_file(self, path: str, name: str = "") -> Outcome:
        """Read a file with the user's own rights."""
        target = ReadFile(path=path, name=name)
        try:
            with open(path, "rb") as f:
                size = os.fstat(f.fileno()).st_size
                if size > self.max_read_bytes:
                    f.seek(size - self.max_read_bytes)
                data = f.read(self.max_read_bytes)
        except PermissionError:
            logger.info("Unprivileged read refused for %s", path)
            return PermissionRequired(target)
        except OSError as exc:
            return Failed(f"Failed to read {target.title}: {exc.strerror or exc}")
        return Succeeded(self._decode(data))

    def run_command(self, argv: list[str] | tuple[str, ...], name: str = "") -> Outcome:
        """Run a read-only command with the user's own rights."""
        target = RunCommand(argv=tuple(argv), name=name)
        try:
            result = subprocess.run(
                list(target.argv),
                stdin=subprocess.DEVNULL,
                capture_output=True,
                env=self._child_env(),
                check=False,
            )
        except FileNotFoundError:
            return Failed(f"{target.argv[0]} not found")
        except OSError as exc:
            return Failed(f"Failed to run {target.argv[0]}: {exc}")

        stderr = result.stderr.decode("utf-8", errors="replace")
        if result.returncode == 0:
            return Succeeded(self._decode(result.stdout))
        if _PERMISSION_MARKERS.search(stderr):
            logger.info("Unprivileged %s refused (exit %s)", target.argv[0], result.returncode)
            return PermissionRequired(target)
        return Failed(_first_line(stderr, f"{target.argv[0]} failed (exit {result.returncode})"))

    def escalate(self, target: Target, password: PasswordBuffer) -> Outcome:
        """Repeat *target* through sudo, feeding *password* on stdin.

        *password* is cleared before this returns, whatever the outcome.
        """
        payload = password.stdin_payload()
        try:
            return self._escalate(target, payload)
        finally:
            wipe(payload)
            password.clear()

    def _escalate(self, target: Target, payload: bytearray) -> Outcome:
        argv = self._sudo_argv(target)
        logger.info("Escalating read of %s", target.title)
        try:
            result = subprocess.run(
                argv,
                input=payload,
                capture_output=True,
                env=self._child_env(),
                check=False,
            )
        except FileNotFoundError:
            logger.warning("Privilege escalation binary %s not found", self.sudo_path)
            return Failed(f"{self.sudo_path} not found")
        except OSError as exc:
            return Failed(f"Failed to run {self.sudo_path}: {exc}")

        if result.returncode == 0:
            logger.info("Escalated read of %s succeeded", target.title)
            return Succeeded(self._decode(result.stdout))

        stderr = result.stderr.decode("utf-8", errors="replace")
        if _AUTH_FAILURE_MARKERS.search(stderr):
            logger.info("Escalated read of %s denied: authentication failed", target.title)
            return Denied()
        logger.info(
            "Escalated read of %s failed (exit %s)", target.title, result.returncode,
        )
        return Failed(_first_line(stderr, f"{self.sudo_path} failed (exit {result.returncode})"))

    def _sudo_argv(self, target: Target) -> list[str]:
        # -S: password from stdin; -k: ignore cached credentials; -p "": no prompt
        prefix = [self.sudo_path, "-S", "-k", "-p", "", "--"]
        if isinstance(target, ReadFile):
            return [*prefix, "tail", "-c", str(self.max_read_bytes), "--", target.path]
        return [*prefix, *target.argv]

    def _decode(self, data: bytes) -> str:
        return cap_log_text(data.decode("utf-8", errors="replace"), self.line_cap)

    @staticmethod
    def _child_env() -> dict[str, str]:
        env = dict(os.environ)
        env["LC_ALL"] = "C"
        return env
