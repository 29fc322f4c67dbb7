"""Configuration loading for dayseal.

Settings come from the first of ``dayseal.toml``, ``dayseal.json``,
``.dayseal.toml``, ``.dayseal.json`` found in the project root, or from
defaults when none exists.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .results import ConfigError
from .seal import DEFAULT_MIN_JOURNAL_LENGTH

CONFIG_CANDIDATES = (
    "dayseal.toml",
    "dayseal.json",
    ".dayseal.toml",
    ".dayseal.json",
)


@dataclass
class DaySealConfig:
    """Configuration for one user's record set."""

    project_root: Path = field(default_factory=Path.cwd)

    # Where daily snapshots live (relative to project_root)
    data_dir: str = ".dayseal/records"

    # Seal rule: legacy journal length that counts as enough writing
    min_journal_length: int = DEFAULT_MIN_JOURNAL_LENGTH

    lock_timeout: float = 10.0

    # Statistics
    trend_days: int = 30

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    def get_data_path(self) -> Path:
        return self.project_root / self.data_dir


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def load_json_config(path: Path) -> dict[str, Any]:
    """Load configuration from JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def dict_to_config(data: dict[str, Any], project_root: Path) -> DaySealConfig:
    """Convert dictionary to DaySealConfig.

    Recognised tables: ``storage`` (``data_dir``, ``lock_timeout``),
    ``seal`` (``min_journal_length``), ``stats`` (``trend_days``),
    ``logging`` (``level``, ``json``).
    """
    config = DaySealConfig(project_root=project_root)

    try:
        if "storage" in data:
            storage = data["storage"]
            if "data_dir" in storage:
                config.data_dir = str(storage["data_dir"])
            if "lock_timeout" in storage:
                config.lock_timeout = float(storage["lock_timeout"])

        if "seal" in data:
            seal = data["seal"]
            if "min_journal_length" in seal:
                config.min_journal_length = int(seal["min_journal_length"])

        if "stats" in data:
            stats = data["stats"]
            if "trend_days" in stats:
                config.trend_days = int(stats["trend_days"])

        if "logging" in data:
            logging_cfg = data["logging"]
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"])
            if "json" in logging_cfg:
                config.log_json = bool(logging_cfg["json"])
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration value: {e}") from e

    if config.min_journal_length < 0:
        raise ConfigError("seal.min_journal_length must not be negative")
    if config.trend_days < 1:
        raise ConfigError("stats.trend_days must be at least 1")

    return config


def find_config_file(project_root: Path) -> Optional[Path]:
    """Find the first configuration file present in the project root."""
    for name in CONFIG_CANDIDATES:
        path = project_root / name
        if path.exists():
            return path
    return None


def load_config(project_root: Path, config_path: Optional[Path] = None) -> DaySealConfig:
    """Load configuration.

    Args:
        project_root: Root directory holding the data and config files
        config_path: Optional explicit path to config file

    Raises:
        ConfigError: If the file type is unsupported or the file is invalid.
    """
    if config_path is None:
        config_path = find_config_file(project_root)

    if config_path is None:
        return DaySealConfig(project_root=project_root)

    suffix = config_path.suffix.lower()

    try:
        if suffix == ".toml":
            config_dict = load_toml_config(config_path)
        elif suffix == ".json":
            config_dict = load_json_config(config_path)
        else:
            raise ConfigError(f"Unsupported config file type: {suffix}")
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"Cannot parse {config_path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigError(f"Config root must be a table/object: {config_path}")
    return dict_to_config(config_dict, project_root)
