"""Listings of plain log files and systemd journal files."""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from rtop.engine.config import RtopConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogEntry:
    name: str  # path relative to the listing root
    path: str
    size: int
    modified: float

    @property
    def modified_label(self) -> str:
        if not self.modified:
            return "-"
        return datetime.fromtimestamp(self.modified).strftime("%Y-%m-%d %H:%M")


def _walk(root: Path, skip: Path | None = None) -> list[LogEntry]:
    entries: list[LogEntry] = []
    try:
        stack = list(root.iterdir())
    except OSError as e:
        logger.debug("Cannot list %s: %s", root, e)
        return entries

    while stack:
        path = stack.pop()
        if skip is not None and (path == skip or skip in path.parents):
            continue
        try:
            st = path.lstat()
        except OSError:
            continue
        if stat.S_ISLNK(st.st_mode):
            # Follow symlinks to files only; directory links could cycle.
            try:
                st = path.stat()
            except OSError:
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
        elif stat.S_ISDIR(st.st_mode):
            try:
                stack.extend(path.iterdir())
            except OSError as e:
                logger.debug("Cannot list %s: %s", path, e)
            continue
        elif not stat.S_ISREG(st.st_mode):
            continue
        entries.append(
            LogEntry(
                name=os.path.relpath(path, root),
                path=str(path),
                size=st.st_size,
                modified=st.st_mtime,
            )
        )
    entries.sort(key=lambda e: e.name)
    return entries


def list_log_files(root: str | Path = "/var/log", journal_root: str | Path | None = None) -> list[LogEntry]:
    """Every file under *root*, skipping the binary journal subtree."""
    root = Path(root)
    skip = Path(journal_root) if journal_root is not None else root / "journal"
    return _walk(root, skip=skip)


def list_journal_files(root: str | Path = "/var/log/journal") -> list[LogEntry]:
    return _walk(Path(root))


def journal_command(config: RtopConfig, path: str) -> list[str]:
    """``journalctl`` argv that prints the tail of one journal file."""
    return [
        config.journalctl_path,
        "--no-pager",
        "--file",
        path,
        "-n",
        str(config.journal_lines),
        "-o",
        "short-iso",
    ]
