"""Configuration loading for TradeLedger.

Configuration lives in a TOML file, by default
~/.config/tradeledger/config.toml:

    [journal]
    db_path = "~/.config/tradeledger/tradeledger.db"
    default_currency = "USD"
    default_initial_balance = 10000.0

    [logging]
    level = "WARNING"

A missing file means all defaults apply.
"""

import copy
import logging
from pathlib import Path
from typing import Optional

import toml

from tradeledger.errors import TradeLedgerError

CONFIG_DIR = Path.home() / ".config" / "tradeledger"
CONFIG_PATH = CONFIG_DIR / "config.toml"

DEFAULT_CONFIG = {
    "journal": {
        "db_path": str(CONFIG_DIR / "tradeledger.db"),
        "default_currency": "USD",
        "default_initial_balance": 10000.0,
    },
    "logging": {
        "level": "WARNING",
    },
}


class ConfigError(TradeLedgerError):
    """Raised when the configuration file cannot be read."""


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load configuration, filling in defaults for anything not set.

    Args:
        config_path: Config file to read. Defaults to CONFIG_PATH.

    Returns:
        Configuration dictionary with every default section present.

    Raises:
        ConfigError: If the file exists but is not valid TOML, or names an
            unknown log level.
    """
    path = config_path or CONFIG_PATH
    config = copy.deepcopy(DEFAULT_CONFIG)

    if not path.exists():
        return config

    try:
        loaded = toml.load(path)
    except toml.TomlDecodeError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    for section, values in loaded.items():
        if isinstance(values, dict) and isinstance(config.get(section), dict):
            config[section].update(values)
        else:
            config[section] = values

    section = config["logging"]
    level = section.get("level") if isinstance(section, dict) else None
    if not isinstance(level, str) or not isinstance(logging.getLevelName(level.upper()), int):
        raise ConfigError(f"Invalid config file {path}: unknown log level {level!r}")
    return config


def get_db_path(config: dict) -> Path:
    """Database path from configuration, with ~ expanded."""
    return Path(config["journal"]["db_path"]).expanduser()
