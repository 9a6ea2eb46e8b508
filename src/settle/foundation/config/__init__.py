"""Configuration management for Settle."""

from settle.foundation.config.loader import (
    config_paths,
    config_to_dict,
    get_config,
    load_config,
    reset_config,
)
from settle.foundation.types.config import RetryDefaults, SettleConfig, WaitDefaults

__all__ = [
    "SettleConfig",
    "WaitDefaults",
    "RetryDefaults",
    "config_paths",
    "config_to_dict",
    "get_config",
    "load_config",
    "reset_config",
]
