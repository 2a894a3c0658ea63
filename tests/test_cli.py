from __future__ import annotations

import logging
import sys
from argparse import Namespace
from logging.handlers import RotatingFileHandler
from unittest.mock import patch

import pytest

from rtop import app as cli
from rtop.engine.config import RtopConfig


def _args(**overrides) -> Namespace:
    values = dict(
        config=None, shell=None, tick=None,
        terminate_shell_on_leave=False, log_level=None, list_logs=False,
    )
    values.update(overrides)
    return Namespace(**values)


def test_flags_override_yaml_and_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("RTOP_SHELL", "/bin/env-shell")
    config_path = tmp_path / "rtop.yaml"
    config_path.write_text("ui:\n  tick_interval_seconds: 2.0\nshell:\n  path: /bin/yaml-shell\n")
    config = cli.build_config(_args(config=str(config_path), tick=0.3, terminate_shell_on_leave=True))
    assert config.shell == "/bin/yaml-shell"
    assert config.tick_interval_seconds == 0.3
    assert config.shell_leave_policy == "terminate"


def test_list_logs_prints_readable_files(tmp_path, capsys) -> None:
    (tmp_path / "syslog").write_text("x" * 2048)
    (tmp_path / "journal").mkdir()
    (tmp_path / "journal" / "system.journal").write_text("binary")
    cli.list_logs(RtopConfig(log_root=str(tmp_path), journal_root=str(tmp_path / "journal")))
    out = capsys.readouterr().out
    assert "syslog" in out and "2.0K" in out
    assert "system.journal" not in out


def test_list_logs_empty(tmp_path, capsys) -> None:
    cli.list_logs(RtopConfig(log_root=str(tmp_path)))
    assert "No log files" in capsys.readouterr().out


def test_main_without_terminal_exits_1(monkeypatch, tmp_path, capsys) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    monkeypatch.setattr(sys, "argv", ["rtop"])
    with patch.object(cli, "require_terminal", side_effect=cli.TerminalUnavailableError("stdin")):
        with pytest.raises(SystemExit) as excinfo:
            cli.main()
    assert excinfo.value.code == 1
    assert "stdin" in capsys.readouterr().err


def test_main_bad_config_exits_2(monkeypatch, tmp_path) -> None:
    bad = tmp_path / "rtop.yaml"
    bad.write_text("shell:\n  leave_policy: sometimes\n")
    monkeypatch.setattr(sys, "argv", ["rtop", "--config", str(bad)])
    with pytest.raises(SystemExit) as excinfo:
        cli.main()
    assert excinfo.value.code == 2


def test_configure_logging_uses_rotating_file(tmp_path) -> None:
    root = logging.getLogger()
    saved = (root.level, list(root.handlers))
    try:
        path = cli.configure_logging(RtopConfig(log_file=str(tmp_path / "logs" / "rtop.log"), log_level="DEBUG"))
        assert path.parent.is_dir()
        assert [type(h) for h in root.handlers] == [RotatingFileHandler]
        assert root.level == logging.DEBUG
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved[1]
        root.setLevel(saved[0])
