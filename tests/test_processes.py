from __future__ import annotations

import os
from unittest.mock import MagicMock, patch

import psutil

from rtop.shared.services.processes import list_processes, process_details


def _proc(pid: int, cpu: float, name: str = "p") -> MagicMock:
    proc = MagicMock()
    proc.info = {
        "pid": pid, "name": name, "username": "root", "cpu_percent": cpu,
        "memory_percent": 0.5, "memory_info": MagicMock(rss=4096), "status": "sleeping",
    }
    return proc


def test_list_processes_sorted_by_cpu_then_pid() -> None:
    procs = [_proc(30, 1.0), _proc(10, 5.0), _proc(20, 1.0)]
    with patch("psutil.process_iter", return_value=procs):
        rows = list_processes()
    assert [r.pid for r in rows] == [10, 20, 30]
    assert rows[0].rss == 4096


def test_details_of_own_process() -> None:
    text = process_details(os.getpid())
    assert f"PID: {os.getpid()}" in text
    assert "Threads:" in text


def test_details_of_vanished_process() -> None:
    with patch("psutil.Process", side_effect=psutil.NoSuchProcess(99999)):
        assert process_details(99999) == "Process 99999 no longer exists."
