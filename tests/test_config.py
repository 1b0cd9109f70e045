"""
Tests for environment-based configuration
"""

import pytest

from payment_ledger import config as config_module
from payment_ledger.config import LedgerConfig, get_config, reload_config


class TestLedgerConfig:
    """Test configuration loading"""

    def test_defaults(self, monkeypatch):
        """Test default values without environment overrides"""
        for name in ("LEDGER_LOG_LEVEL", "LEDGER_LOG_FORMAT", "LEDGER_LOG_FILE", "LEDGER_INPUT_ENCODING"):
            monkeypatch.delenv(name, raising=False)

        cfg = LedgerConfig()
        assert cfg.log_level == "WARNING"
        assert cfg.log_format == "json"
        assert cfg.log_file is None
        assert cfg.input_encoding == "utf-8"

    def test_environment_overrides(self, monkeypatch):
        """Test LEDGER_ prefixed variables, case-insensitively"""
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("ledger_log_format", "text")
        monkeypatch.setenv("LEDGER_INPUT_ENCODING", "latin-1")

        cfg = LedgerConfig()
        assert cfg.log_level == "DEBUG"
        assert cfg.log_format == "text"
        assert cfg.input_encoding == "latin-1"

    def test_reload_replaces_global(self, monkeypatch):
        """Test reload_config picks up new environment"""
        monkeypatch.setenv("LEDGER_LOG_LEVEL", "ERROR")
        try:
            reloaded = reload_config()
            assert reloaded is get_config()
            assert config_module.config is reloaded
            assert get_config().log_level == "ERROR"
        finally:
            monkeypatch.delenv("LEDGER_LOG_LEVEL")
            reload_config()
