"""Configuration loaded from environment variables.

All settings have sensible defaults. Override via RTOP_* env vars or a
YAML file (see ``rtop.engine.yaml_config``).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from .errors import ConfigError

logger = logging.getLogger(__name__)

SHELL_LEAVE_POLICIES = ("persist", "terminate")


def _default_log_file() -> str:
    return str(Path.home() / ".rtop" / "logs" / "rtop.log")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class RtopConfig:
    """Runtime configuration for the dashboard and its shell session."""

    # Main loop cadence (the original dashboard ticked every 800ms)
    tick_interval_seconds: float = 0.8
    # Services and log listings are slower to gather; refresh every N ticks
    slow_refresh_ticks: int = 10

    # Shell session
    shell: str | None = None  # None = resolve the user's login shell
    shell_args: list[str] = field(default_factory=lambda: ["-i", "-l"])
    # "persist": keep the session across tab switches until it exits.
    # "terminate": kill it whenever the shell tab is left.
    shell_leave_policy: str = "persist"
    terminate_grace_seconds: float = 1.0
    output_queue_chunks: int = 256
    scrollback_lines: int = 5000

    # Privileged reads
    sudo_path: str = "sudo"
    journalctl_path: str = "journalctl"
    max_password_attempts: int = 2

    # Log viewers
    log_root: str = "/var/log"
    journal_root: str = "/var/log/journal"
    log_line_cap: int = 5000
    journal_lines: int = 5000
    max_read_bytes: int = 8 * 1024 * 1024

    # Logging
    log_level: str = "INFO"
    log_file: str = field(default_factory=_default_log_file)

    def validate(self) -> None:
        """Raise ConfigError for values the runtime cannot work with."""
        if self.tick_interval_seconds <= 0:
            raise ConfigError("tick_interval_seconds", "must be positive")
        if self.slow_refresh_ticks < 1:
            raise ConfigError("slow_refresh_ticks", "must be at least 1")
        if self.shell_leave_policy not in SHELL_LEAVE_POLICIES:
            raise ConfigError(
                "shell_leave_policy",
                f"expected one of {', '.join(SHELL_LEAVE_POLICIES)}, "
                f"got {self.shell_leave_policy!r}",
            )
        if self.terminate_grace_seconds < 0:
            raise ConfigError("terminate_grace_seconds", "must not be negative")
        if self.output_queue_chunks < 1:
            raise ConfigError("output_queue_chunks", "must be at least 1")
        if self.scrollback_lines < 1:
            raise ConfigError("scrollback_lines", "must be at least 1")
        if self.max_password_attempts < 1:
            raise ConfigError("max_password_attempts", "must be at least 1")
        if self.log_line_cap < 1:
            raise ConfigError("log_line_cap", "must be at least 1")
        if self.journal_lines < 1:
            raise ConfigError("journal_lines", "must be at least 1")
        if self.max_read_bytes < 1:
            raise ConfigError("max_read_bytes", "must be at least 1")
        level = self.log_level.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigError("log_level", f"unknown level {self.log_level!r}")
        self.log_level = level

    def with_overrides(self, **overrides: object) -> RtopConfig:
        """Return a copy with the non-None overrides applied."""
        known = {f.name for f in fields(self)}
        changes = {
            k: v for k, v in overrides.items()
            if v is not None and k in known
        }
        updated = replace(self, **changes)
        updated.validate()
        return updated

    @classmethod
    def from_env(cls) -> RtopConfig:
        """Load configuration from RTOP_* environment variables."""
        rtop_vars = {
            k: v for k, v in os.environ.items() if k.startswith("RTOP_")
        }
        if rtop_vars:
            logger.info(
                "RtopConfig.from_env: RTOP_* env overrides: %s",
                ", ".join(sorted(rtop_vars)),
            )
        else:
            logger.debug("RtopConfig.from_env: no RTOP_* env vars set, using defaults")

        defaults = cls()
        try:
            config = cls(
                tick_interval_seconds=float(os.getenv(
                    "RTOP_TICK_SECONDS", str(defaults.tick_interval_seconds)
                )),
                slow_refresh_ticks=int(os.getenv(
                    "RTOP_SLOW_REFRESH_TICKS", str(defaults.slow_refresh_ticks)
                )),
                shell=os.getenv("RTOP_SHELL") or None,
                shell_leave_policy=(
                    "terminate"
                    if _env_bool("RTOP_TERMINATE_SHELL_ON_LEAVE", False)
                    else defaults.shell_leave_policy
                ),
                terminate_grace_seconds=float(os.getenv(
                    "RTOP_TERMINATE_GRACE", str(defaults.terminate_grace_seconds)
                )),
                sudo_path=os.getenv("RTOP_SUDO", defaults.sudo_path),
                journalctl_path=os.getenv(
                    "RTOP_JOURNALCTL", defaults.journalctl_path
                ),
                max_password_attempts=int(os.getenv(
                    "RTOP_MAX_PASSWORD_ATTEMPTS",
                    str(defaults.max_password_attempts),
                )),
                log_root=os.getenv("RTOP_LOG_ROOT", defaults.log_root),
                journal_root=os.getenv(
                    "RTOP_JOURNAL_ROOT", defaults.journal_root
                ),
                log_level=os.getenv("RTOP_LOG_LEVEL", defaults.log_level),
                log_file=os.getenv("RTOP_LOG_FILE", defaults.log_file),
            )
        except ValueError as exc:
            raise ConfigError("RTOP_*", str(exc)) from exc
        config.validate()
        logger.info(
            "RtopConfig.from_env: tick=%.2fs shell=%s leave_policy=%s",
            config.tick_interval_seconds,
            config.shell or "<login shell>",
            config.shell_leave_policy,
        )
        return config
