from __future__ import annotations

import subprocess
from unittest.mock import patch

from rtop.shared.services.systemd import ServiceRow, list_services, parse_list_units, service_status

LIST_UNITS = """\
ssh.service        loaded    active   running OpenBSD Secure Shell server
● bad.service      not-found inactive dead    bad.service
cron.service       loaded    active   running Regular background program processing daemon
short.service loaded active exited

"""


def test_parse_list_units() -> None:
    rows = parse_list_units(LIST_UNITS)
    assert [r.unit for r in rows] == ["bad.service", "cron.service", "short.service", "ssh.service"]
    assert rows[0] == ServiceRow("bad.service", "not-found", "inactive", "dead", "bad.service")
    assert rows[3].description == "OpenBSD Secure Shell server"
    assert rows[2].description == ""


def test_list_services_without_systemctl() -> None:
    with patch("rtop.shared.services.systemd.subprocess.run", side_effect=FileNotFoundError):
        assert list_services() == []


def test_list_services_runs_systemctl() -> None:
    done = subprocess.CompletedProcess([], 0, stdout=LIST_UNITS, stderr="")
    with patch("rtop.shared.services.systemd.subprocess.run", return_value=done) as run:
        rows = list_services()
    assert len(rows) == 4
    argv = run.call_args.args[0]
    assert argv[:3] == ["systemctl", "list-units", "--type=service"]


def test_service_status_keeps_output_of_failed_units() -> None:
    done = subprocess.CompletedProcess([], 3, stdout="● bad.service\n   Active: failed\n", stderr="")
    with patch("rtop.shared.services.systemd.subprocess.run", return_value=done):
        assert "Active: failed" in service_status("bad.service")
