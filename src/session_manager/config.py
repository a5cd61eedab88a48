"""Configuration loader — reads optional YAML config and merges with defaults."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

CONFIG_PATH = Path("~/.config/claude-session-manager/config.yaml")

DEFAULTS = {
    "projects_dir": "~/.claude/projects",
    "backup_dir_name": "session-manager-backups",
    "restore_choices": 10,
    "preview_width": 57,
    "log_level": "WARNING",
}


@dataclass
class ManagerConfig:
    projects_dir: Path
    backup_dir_name: str
    restore_choices: int
    preview_width: int
    log_level: str


def load_config(config_path: Path | None = None) -> ManagerConfig:
    """Load config from ~/.config/claude-session-manager/config.yaml, merged with defaults.

    Expand ~ in paths. If no config file exists, return defaults (don't error).
    """
    if config_path is None:
        config_path = CONFIG_PATH

    config_path = config_path.expanduser()

    merged = dict(DEFAULTS)

    if config_path.is_file():
        with open(config_path) as f:
            user_config = yaml.safe_load(f)
        if isinstance(user_config, dict):
            for key in DEFAULTS:
                if key in user_config:
                    merged[key] = user_config[key]

    return ManagerConfig(
        projects_dir=Path(merged["projects_dir"]).expanduser(),
        backup_dir_name=str(merged["backup_dir_name"]),
        restore_choices=max(1, int(merged["restore_choices"])),
        preview_width=max(10, int(merged["preview_width"])),
        log_level=str(merged["log_level"]).upper(),
    )
