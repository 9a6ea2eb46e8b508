"""Settle configuration management.

Loads configuration from .settle/config.yaml with sensible defaults.
All settings can be overridden via environment variables (SETTLE_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .settle/config.yaml (project-local)
3. ~/.settle/config.yaml (user-global)
4. Built-in defaults

Only the CLI reads this global configuration. Library callers pass WaitSpec
values explicitly.

Example .settle/config.yaml:

    wait:
      timeout: 1800
      min_timeout: 5
      max_interval: 30
    retry:
      max_attempts: 5
"""


import os
import threading
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from settle.foundation.errors import config_error
from settle.foundation.types.config import RetryDefaults, SettleConfig, WaitDefaults

ENV_PREFIX = "SETTLE_"

_SECTIONS: dict[str, type] = {
    "wait": WaitDefaults,
    "retry": RetryDefaults,
}

# Global config instance (lazy-loaded, thread-safe)
_config: SettleConfig | None = None
_config_lock = threading.Lock()


def _defaults() -> dict[str, Any]:
    """Get defaults from dataclass definitions (single source of truth)."""
    return asdict(SettleConfig())


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str) -> bool | int | float | str:
    """Coerce an environment string to bool/int/float where it looks like one."""
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: SETTLE_<SECTION>_<KEY>

    Examples:
        SETTLE_WAIT_TIMEOUT=1800
        SETTLE_WAIT_NOT_FOUND_CHECKS=20
        SETTLE_RETRY_MAX_ATTEMPTS=5
        SETTLE_VERBOSE=true
    """
    environ = os.environ if environ is None else environ

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue
        path_str = key[len(ENV_PREFIX):].lower()

        if path_str == "verbose":
            config_dict["verbose"] = _coerce(value)
            continue

        for section, section_type in _SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            name = path_str[len(section) + 1:]
            # Only known keys; SETTLE_LOG_LEVEL and friends belong to logging
            if name in {f.name for f in fields(section_type)}:
                config_dict.setdefault(section, {})[name] = _coerce(value)
            break

    return config_dict


def _dict_to_config(data: dict) -> SettleConfig:
    """Convert a dict to SettleConfig, validating as we go."""
    unknown = set(data) - {*_SECTIONS, "verbose"}
    if unknown:
        raise config_error(key=", ".join(sorted(unknown)), detail="unknown setting")

    sections: dict[str, Any] = {}
    for section, section_type in _SECTIONS.items():
        values = data.get(section) or {}
        if not isinstance(values, dict):
            raise config_error(key=section, detail="expected a mapping")
        known = {f.name for f in fields(section_type)}
        extra = set(values) - known
        if extra:
            raise config_error(
                key=", ".join(f"{section}.{k}" for k in sorted(extra)),
                detail="unknown setting",
            )
        try:
            sections[section] = section_type(**values)
        except ValueError as e:
            raise config_error(key=section, detail=str(e), cause=e) from e

    verbose = data.get("verbose", False)
    if not isinstance(verbose, bool):
        raise config_error(key="verbose", detail=f"expected true or false, got {verbose!r}")

    config = SettleConfig(
        wait=sections["wait"],
        retry=sections["retry"],
        verbose=verbose,
    )

    # Surface bad timing values now rather than at the first wait
    try:
        config.wait.backoff()
        config.retry.policy()
        config.wait.to_spec((), ())
    except (TypeError, ValueError) as e:
        raise config_error(key="wait/retry", detail=str(e), cause=e) from e

    return config


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise config_error(path=str(path), detail=str(e), cause=e) from e
    if not isinstance(data, dict):
        raise config_error(path=str(path), detail="top level must be a mapping")
    return data


def config_paths(path: str | Path | None = None) -> list[Path]:
    """Candidate config files, highest priority first."""
    paths = []
    if path:
        paths.append(Path(path))
    paths.extend([
        Path(".settle/config.yaml"),
        Path.home() / ".settle" / "config.yaml",
    ])
    return paths


def load_config(path: str | Path | None = None) -> SettleConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (SETTLE_*)
    2. Explicit path if provided
    3. .settle/config.yaml (project-local)
    4. ~/.settle/config.yaml (user-global)
    5. Built-in defaults

    Raises:
        ConfigError: If the explicit path is missing, a file is not valid
            YAML, or a setting is unknown or out of range.
    """
    global _config

    if path and not Path(path).exists():
        raise config_error(path=str(path), detail="file does not exist")

    config_dict = _defaults()
    for config_path in config_paths(path):
        if config_path.exists():
            _deep_update(config_dict, _read_yaml(config_path))
            break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    try:
        _config = _dict_to_config(config_dict)
    except TypeError as e:
        raise config_error(key="config", detail=str(e), cause=e) from e
    return _config


def get_config() -> SettleConfig:
    """Get the current configuration, loading if needed.

    Thread-safe with double-check locking.
    """
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def config_to_dict(config: SettleConfig) -> dict[str, Any]:
    """Plain dict view of a config, for display."""
    return asdict(config)

