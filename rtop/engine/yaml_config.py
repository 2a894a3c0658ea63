"""YAML configuration loader.

Example YAML:
    ui:
      tick_interval_seconds: 0.5
      slow_refresh_ticks: 10

    shell:
      path: /bin/zsh
      args: ["-i", "-l"]
      leave_policy: persist      # or: terminate
      terminate_grace_seconds: 1.0

    privileged:
      sudo_path: sudo
      journalctl_path: journalctl
      max_password_attempts: 2

    logs:
      root: /var/log
      journal_root: /var/log/journal
      line_cap: 5000

    logging:
      level: INFO
      file: ~/.rtop/logs/rtop.log

Values from the file are layered over ``RtopConfig.from_env()``.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .config import RtopConfig
from .errors import ConfigError

logger = logging.getLogger(__name__)

# section -> {yaml key: RtopConfig attribute}
_SECTION_KEYS: dict[str, dict[str, str]] = {
    "ui": {
        "tick_interval_seconds": "tick_interval_seconds",
        "slow_refresh_ticks": "slow_refresh_ticks",
    },
    "shell": {
        "path": "shell",
        "args": "shell_args",
        "leave_policy": "shell_leave_policy",
        "terminate_grace_seconds": "terminate_grace_seconds",
        "output_queue_chunks": "output_queue_chunks",
        "scrollback_lines": "scrollback_lines",
    },
    "privileged": {
        "sudo_path": "sudo_path",
        "journalctl_path": "journalctl_path",
        "max_password_attempts": "max_password_attempts",
    },
    "logs": {
        "root": "log_root",
        "journal_root": "journal_root",
        "line_cap": "log_line_cap",
        "journal_lines": "journal_lines",
        "max_read_bytes": "max_read_bytes",
    },
    "logging": {
        "level": "log_level",
        "file": "log_file",
    },
}


def default_config_path() -> Path:
    """Return ``$XDG_CONFIG_HOME/rtop/rtop.yaml`` (``~/.config`` fallback)."""
    base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "rtop" / "rtop.yaml"


def discover_config_path(explicit: str | None = None) -> Path | None:
    """Pick the config file to load, or None to run on env/defaults."""
    if explicit:
        path = Path(explicit).expanduser()
        logger.info("Using explicit config path: %s (exists=%s)", path, path.exists())
        return path
    candidate = default_config_path()
    if candidate.is_file():
        logger.info("Auto-discovered config: %s", candidate)
        return candidate
    logger.info("No config file found (tried %s); using defaults", candidate)
    return None


def _coerce(attr: str, value: Any, template: RtopConfig) -> Any:
    current = getattr(template, attr)
    if attr == "shell":
        return str(value) if value else None
    if attr == "shell_args":
        if not isinstance(value, list) or not all(isinstance(a, str) for a in value):
            raise ConfigError(attr, "must be a list of strings")
        return list(value)
    if attr == "log_file":
        return str(Path(str(value)).expanduser())
    if isinstance(current, bool):
        return bool(value)
    if isinstance(current, int):
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(attr, f"expected an integer, got {value!r}") from exc
    if isinstance(current, float):
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigError(attr, f"expected a number, got {value!r}") from exc
    return str(value)


def load_yaml_config(
    path: str | Path,
    base: RtopConfig | None = None,
) -> RtopConfig:
    """Load and parse a YAML config file on top of *base* (env defaults)."""
    path = Path(path)
    logger.info(
        "load_yaml_config: attempting to load config from %s (exists=%s)",
        path, path.exists(),
    )
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error("load_yaml_config: config file not found at %s", path)
        raise
    except yaml.YAMLError as exc:
        logger.error("load_yaml_config: YAML parse error in %s: %s", path, exc)
        raise ConfigError(str(path), f"YAML parse error: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError(str(path), "top level must be a mapping")

    config = base or RtopConfig.from_env()
    changes: dict[str, Any] = {}
    for section, values in raw.items():
        keys = _SECTION_KEYS.get(section)
        if keys is None:
            logger.warning("load_yaml_config: ignoring unknown section %r", section)
            continue
        if not isinstance(values, dict):
            raise ConfigError(section, "section must be a mapping")
        for key, value in values.items():
            attr = keys.get(key)
            if attr is None:
                logger.warning(
                    "load_yaml_config: ignoring unknown key %s.%s", section, key,
                )
                continue
            changes[attr] = _coerce(attr, value, config)

    logger.info(
        "Parsed YAML config %s, sections: %s",
        path.name, ", ".join(sorted(raw)) if raw else "(empty)",
    )
    merged = RtopConfig(**{**config.__dict__, **changes})
    merged.validate()
    return merged
