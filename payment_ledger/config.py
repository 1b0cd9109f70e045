"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Ledger replay configuration"""

    # Logging configuration
    log_level: str = "WARNING"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Input configuration
    input_encoding: str = "utf-8"

    class Config:
        env_prefix = "LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
