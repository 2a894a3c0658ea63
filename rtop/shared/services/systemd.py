"""systemd service listing via ``systemctl``."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

logger = logging.getLogger(__name__)

SYSTEMCTL = "systemctl"
_TIMEOUT_SECONDS = 5


@dataclass(frozen=True)
class ServiceRow:
    unit: str
    load: str
    active: str
    sub: str
    description: str


def parse_list_units(output: str) -> list[ServiceRow]:
    """Parse ``systemctl list-units --no-legend`` columns.

    Columns are UNIT LOAD ACTIVE SUB DESCRIPTION; failed units carry a
    leading bullet which is dropped.
    """
    rows: list[ServiceRow] = []
    for line in output.splitlines():
        parts = line.strip().lstrip("●*").split(None, 4)
        if len(parts) < 4:
            continue
        description = parts[4] if len(parts) == 5 else ""
        rows.append(ServiceRow(parts[0], parts[1], parts[2], parts[3], description))
    rows.sort(key=lambda r: r.unit)
    return rows


def list_services(systemctl: str = SYSTEMCTL) -> list[ServiceRow]:
    try:
        result = subprocess.run(
            [systemctl, "list-units", "--type=service", "--all", "--no-legend", "--no-pager", "--plain"],
            capture_output=True,
            text=True,
            timeout=_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("systemctl list-units unavailable: %s", e)
        return []
    if result.returncode != 0:
        logger.debug("systemctl list-units exited %s", result.returncode)
        return []
    return parse_list_units(result.stdout)


def service_status(unit: str, systemctl: str = SYSTEMCTL) -> str:
    """``systemctl status`` text; a non-zero exit still carries useful output."""
    try:
        result = subprocess.run(
            [systemctl, "status", "--no-pager", "--full", "--", unit],
            capture_output=True,
            text=True,
            timeout=_TIMEOUT_SECONDS,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("systemctl status %s failed: %s", unit, e)
        return "systemctl not available or failed to execute."
    text = "\n".join(part for part in (result.stdout.rstrip(), result.stderr.rstrip()) if part)
    return text or "(no output)"
