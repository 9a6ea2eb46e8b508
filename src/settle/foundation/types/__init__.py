"""Shared type definitions."""

from settle.foundation.types.config import RetryDefaults, SettleConfig, WaitDefaults

__all__ = ["RetryDefaults", "SettleConfig", "WaitDefaults"]
