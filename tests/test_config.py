"""Tests for configuration loading and logging setup."""

import logging
import tempfile
from pathlib import Path

import pytest

from tradeledger.config import DEFAULT_CONFIG, ConfigError, get_db_path, load_config
from tradeledger.log import setup_logging


@pytest.fixture
def config_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, config_dir: Path):
        config = load_config(config_dir / "absent.toml")

        assert config == DEFAULT_CONFIG
        assert config is not DEFAULT_CONFIG

    def test_partial_section_keeps_other_defaults(self, config_dir: Path):
        path = config_dir / "config.toml"
        path.write_text('[journal]\ndefault_currency = "EUR"\n')

        config = load_config(path)

        assert config["journal"]["default_currency"] == "EUR"
        assert config["journal"]["default_initial_balance"] == 10000.0
        assert config["logging"]["level"] == "WARNING"

    def test_defaults_not_mutated(self, config_dir: Path):
        path = config_dir / "config.toml"
        path.write_text('[logging]\nlevel = "DEBUG"\n')

        load_config(path)

        assert DEFAULT_CONFIG["logging"]["level"] == "WARNING"

    def test_invalid_toml(self, config_dir: Path):
        path = config_dir / "config.toml"
        path.write_text("[journal\n")

        with pytest.raises(ConfigError):
            load_config(path)

    def test_db_path_expands_home(self):
        config = {"journal": {"db_path": "~/ledger.db"}}

        assert get_db_path(config) == Path.home() / "ledger.db"


class TestSetupLogging:
    def test_installs_single_handler(self):
        setup_logging("info")
        setup_logging("debug")

        logger = logging.getLogger("tradeledger")
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG


class TestLogLevelValidation:
    @pytest.mark.parametrize("level", ["debug", "INFO", "Warning", "ERROR", "CRITICAL"])
    def test_known_levels_accepted(self, config_dir: Path, level: str):
        path = config_dir / "config.toml"
        path.write_text(f'[logging]\nlevel = "{level}"\n')

        assert load_config(path)["logging"]["level"] == level

    @pytest.mark.parametrize("body", [
        '[logging]\nlevel = "VERBOSE"\n',
        "[logging]\nlevel = 10\n",
        'logging = "debug"\n',
    ])
    def test_unknown_level_rejected(self, config_dir: Path, body: str):
        path = config_dir / "config.toml"
        path.write_text(body)

        with pytest.raises(ConfigError, match="log level"):
            load_config(path)
