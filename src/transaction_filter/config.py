"""
Configuration management for the transaction filter.

Uses Pydantic Settings for environment variable handling and validation,
with an optional YAML file providing defaults.
"""

import os
from datetime import date
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .core.exceptions import ConfigurationError


def load_config_file(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    if config_path is None:
        # Look for config.yaml in common locations
        possible_paths = [
            "config.yaml",  # Current directory
            "../../config.yaml",  # Project root from src/transaction_filter
        ]

        for path in possible_paths:
            if os.path.exists(path):
                config_path = path
                break
        else:
            return {}

    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Invalid configuration file: {config_path}",
            details={"error": str(e)},
        ) from e

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration root must be a mapping: {config_path}")
    return config_data


class StoreSettings(BaseSettings):
    """Identifier store configuration."""

    hpan_path: Optional[Path] = Field(default=None, description="Newline-delimited file of permitted identifiers")
    salt: str = Field(default="", description="Salt appended to the PAN before hashing")
    salt_path: Optional[Path] = Field(default=None, description="File whose first line holds the salt")

    class Config:
        env_prefix = "TRANSACTION_FILTER_STORE_"


class AuditSettings(BaseSettings):
    """Filtered/error record audit configuration."""

    logs_path: str = Field(default="file:./logs", description="Directory reference for audit CSV files")
    execution_date: str = Field(
        default_factory=lambda: date.today().strftime("%Y%m%d"),
        description="Execution date used as audit file prefix",
    )
    enable_on_error_logging: bool = Field(default=True, description="Log records that failed processing")
    enable_on_error_file_logging: bool = Field(default=True, description="Store records that failed processing")
    enable_after_process_logging: bool = Field(default=True, description="Sampled log of processed/filtered records")
    enable_after_process_file_logging: bool = Field(default=True, description="Store filtered records")
    logging_frequency: int = Field(default=10000, description="Log every Nth line (1 = every line at DEBUG, <=0 = never)")
    encoding: str = Field(default="utf-8", description="Audit file character encoding")
    write_workers: int = Field(default=0, ge=0, description="Background audit writer threads (0 = write inline)")

    @field_validator("execution_date")
    def validate_execution_date(cls, v: str) -> str:
        """Execution date becomes part of a file name."""
        if not v or "/" in v or "\\" in v:
            raise ValueError("execution_date must be a non-empty file name fragment")
        return v

    class Config:
        env_prefix = "TRANSACTION_FILTER_AUDIT_"


class Settings(BaseSettings):
    """Main application settings."""

    log_level: str = Field(default="INFO", description="Log level")
    apply_hashing: bool = Field(default=False, description="Hash the PAN before the store lookup")
    workers: int = Field(default=1, ge=1, description="Record processing threads")
    output_dir: Optional[Path] = Field(default=None, description="Directory for forwarded records")
    metrics_textfile: Optional[Path] = Field(default=None, description="Prometheus textfile output")

    # Component settings
    store: StoreSettings = Field(default_factory=StoreSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)

    class Config:
        env_prefix = "TRANSACTION_FILTER_"
        case_sensitive = False


@lru_cache()
def get_settings(config_path: Optional[str] = None) -> Settings:
    """Get cached settings instance with config file and env support."""

    config_data = load_config_file(config_path)

    # Config file provides defaults, env vars override
    if config_data:
        _set_env_from_config(config_data)

    return Settings()


def _set_env_from_config(config_data: Dict[str, Any]) -> None:
    """Set environment variables from config file if not already set."""
    mappings = {
        ("filter", "log_level"): "TRANSACTION_FILTER_LOG_LEVEL",
        ("filter", "apply_hashing"): "TRANSACTION_FILTER_APPLY_HASHING",
        ("filter", "workers"): "TRANSACTION_FILTER_WORKERS",
        ("filter", "output_dir"): "TRANSACTION_FILTER_OUTPUT_DIR",
        ("filter", "metrics_textfile"): "TRANSACTION_FILTER_METRICS_TEXTFILE",
        ("store", "hpan_path"): "TRANSACTION_FILTER_STORE_HPAN_PATH",
        ("store", "salt"): "TRANSACTION_FILTER_STORE_SALT",
        ("store", "salt_path"): "TRANSACTION_FILTER_STORE_SALT_PATH",
        ("audit", "logs_path"): "TRANSACTION_FILTER_AUDIT_LOGS_PATH",
        ("audit", "execution_date"): "TRANSACTION_FILTER_AUDIT_EXECUTION_DATE",
        ("audit", "enable_on_error_logging"): "TRANSACTION_FILTER_AUDIT_ENABLE_ON_ERROR_LOGGING",
        ("audit", "enable_on_error_file_logging"): "TRANSACTION_FILTER_AUDIT_ENABLE_ON_ERROR_FILE_LOGGING",
        ("audit", "enable_after_process_logging"): "TRANSACTION_FILTER_AUDIT_ENABLE_AFTER_PROCESS_LOGGING",
        ("audit", "enable_after_process_file_logging"): "TRANSACTION_FILTER_AUDIT_ENABLE_AFTER_PROCESS_FILE_LOGGING",
        ("audit", "logging_frequency"): "TRANSACTION_FILTER_AUDIT_LOGGING_FREQUENCY",
        ("audit", "encoding"): "TRANSACTION_FILTER_AUDIT_ENCODING",
        ("audit", "write_workers"): "TRANSACTION_FILTER_AUDIT_WRITE_WORKERS",
    }

    for (section, key), env_var in mappings.items():
        if env_var not in os.environ:
            value = (config_data.get(section) or {}).get(key)
            if value is not None:
                # YAML booleans must round-trip as pydantic-parsable strings
                os.environ[env_var] = str(value).lower() if isinstance(value, bool) else str(value)


def reload_settings(config_path: Optional[str] = None) -> Settings:
    """Reload settings (clears cache)."""
    get_settings.cache_clear()
    return get_settings(config_path)
