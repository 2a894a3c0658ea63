"""rtop CLI: main application entry point."""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rtop.engine.config import RtopConfig
from rtop.engine.errors import ConfigError, TerminalUnavailableError

logger = logging.getLogger(__name__)


def configure_logging(config: RtopConfig) -> Path:
    """Send all logging to a rotating file; the TUI owns the terminal."""
    log_file = Path(config.log_file).expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(getattr(logging, config.log_level, logging.INFO))
    root.handlers.clear()
    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s"
    )
    file_handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    return log_file


def require_terminal() -> None:
    for name, stream in (("stdin", sys.stdin), ("stdout", sys.stdout)):
        if stream is None or not stream.isatty():
            raise TerminalUnavailableError(name)


def build_config(args) -> RtopConfig:
    """Defaults, then RTOP_* env vars, then the YAML file, then CLI flags."""
    from rtop.engine.yaml_config import discover_config_path, load_yaml_config

    config = RtopConfig.from_env()
    config_path = discover_config_path(args.config)
    if config_path is not None:
        config = load_yaml_config(config_path, base=config)
    return config.with_overrides(
        shell=args.shell,
        tick_interval_seconds=args.tick,
        shell_leave_policy="terminate" if args.terminate_shell_on_leave else None,
        log_level=args.log_level,
    )


def list_logs(config: RtopConfig) -> None:
    from rtop.shared.services.log_files import list_log_files
    from rtop.shared.services.system_stats import format_bytes

    entries = [
        entry for entry in list_log_files(config.log_root, config.journal_root)
        if os.access(entry.path, os.R_OK)
    ]
    if not entries:
        print(f"No log files under {config.log_root}.")
        return
    width = max(len(entry.name) for entry in entries)
    for entry in entries:
        print(f"  {entry.name:<{width}}  {format_bytes(entry.size):>8}  {entry.modified_label}")


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="rtop",
        description="rtop: system dashboard with an embedded shell and log viewers",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file (default: $XDG_CONFIG_HOME/rtop/rtop.yaml)",
    )
    parser.add_argument(
        "--shell", metavar="PATH",
        help="Shell to run in the shell tab (default: your login shell)",
    )
    parser.add_argument(
        "--tick", type=float, metavar="SECONDS",
        help="Refresh interval in seconds (default: 0.8)",
    )
    parser.add_argument(
        "--terminate-shell-on-leave", action="store_true",
        help="Kill the shell whenever its tab is left instead of keeping it running",
    )
    parser.add_argument(
        "--log-level", metavar="LEVEL",
        help="Log level for the log file (DEBUG, INFO, WARNING, ...)",
    )
    parser.add_argument(
        "--list-logs", action="store_true",
        help="Print the readable log files and exit",
    )
    args = parser.parse_args()

    try:
        config = build_config(args)
    except (ConfigError, FileNotFoundError) as exc:
        print(f"rtop: {exc}", file=sys.stderr)
        sys.exit(2)

    if args.list_logs:
        list_logs(config)
        sys.exit(0)

    try:
        require_terminal()
    except TerminalUnavailableError as exc:
        print(f"rtop: {exc}", file=sys.stderr)
        sys.exit(1)

    log_file = configure_logging(config)
    logger.info(
        "Starting rtop tick=%.2fs leave_policy=%s log=%s",
        config.tick_interval_seconds,
        config.shell_leave_policy,
        log_file,
    )

    from rtop.engine.event_loop import EventLoop
    from rtop.tui.app import RtopApp

    engine = EventLoop(config)
    try:
        RtopApp(engine).run()
    finally:
        engine.shutdown()
    logger.info("rtop exited")


if __name__ == "__main__":
    main()
