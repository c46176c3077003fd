"""
Settings loading, merging and validation for vertrack.

Settings live in a small YAML file. The loader merges whatever the user
wrote over the built-in defaults, so a file only needs to mention the keys
it changes:

    cache:
      ttl_minutes: 15
    notification:
      notify_on_patch: true
      silent_start_hour: null
    github_token: "${GITHUB_TOKEN}"

Merge Behavior
--------------
Same "last wins" deep merge as the rest of the tool:
  - **Dicts**: Recursively merged (keys from the file override defaults)
  - **Lists / scalars**: Replaced

Validation
----------
  - cache.ttl_minutes must be >= 0
  - cache.auto_refresh_interval_minutes must be > 0 while auto refresh is
    enabled (SchedulerMisconfiguredError)
  - notification.silent_start_hour / silent_end_hour must be 0-23 or null
  - fetch_timeout_seconds must be > 0

Functions
---------
load_settings : function
    Read, merge and validate a settings file. Missing file -> defaults.
save_settings : function
    Write settings back as YAML.
settings_from_dict / settings_to_dict : functions
    Convert between Settings and plain dicts.
validate_settings : function
    Raise ConfigError for out-of-range values.
resolve_token : function
    Expand "${VAR}" tokens from the environment.

Error Handling
--------------
- ConfigError: YAML parse errors, wrong types, out-of-range values
- SchedulerMisconfiguredError: auto refresh enabled with interval <= 0
- All errors are chained with "from err" for better debugging
"""

from __future__ import annotations

from dataclasses import asdict
import os
from pathlib import Path
from typing import Any

import yaml

from vertrack.exceptions import ConfigError, SchedulerMisconfiguredError
from vertrack.models import CachePolicy, NotificationPolicy, Settings

# -------------------------------
# Defaults
# -------------------------------


def default_settings_dict() -> dict[str, Any]:
    """Return the built-in defaults as a plain dict."""
    return settings_to_dict(Settings())


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """
    Load a YAML file and return the parsed Python object.

    Raises:
      ConfigError - for invalid YAML (parse error) with chained context
    """
    try:
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """
    Deep-merge two dicts with "overlay wins".

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            result[k] = v
    return result


# -------------------------------
# Conversion
# -------------------------------


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    return asdict(settings)


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    value = data.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"Settings section {key!r} must be a mapping")
    return value


def _optional_hour(value: Any, key: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"notification.{key} must be an integer hour or null")
    return value


def _number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key} must be a number, got {value!r}")
    return value


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Build Settings from a (merged) dict.

    Unknown keys are rejected so that typos in the settings file surface
    instead of being silently ignored.

    Raises:
        ConfigError: On unknown keys or values of the wrong type.

    """
    if not isinstance(data, dict):
        raise ConfigError("Settings must be a mapping")

    unknown = set(data) - {"cache", "notification", "github_token", "fetch_timeout_seconds"}
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(sorted(unknown))}")

    cache_data = _section(data, "cache")
    notify_data = _section(data, "notification")
    try:
        cache = CachePolicy(**cache_data)
        notification = NotificationPolicy(**notify_data)
    except TypeError as err:
        raise ConfigError(f"Invalid settings: {err}") from err

    token = data.get("github_token")
    if token is not None and not isinstance(token, str):
        raise ConfigError("github_token must be a string or null")

    if not isinstance(cache.auto_refresh_enabled, bool):
        raise ConfigError("cache.auto_refresh_enabled must be true or false")
    for key in (
        "enabled",
        "test_mode",
        "notify_on_major",
        "notify_on_minor",
        "notify_on_patch",
        "notify_on_prerelease",
    ):
        if not isinstance(getattr(notification, key), bool):
            raise ConfigError(f"notification.{key} must be true or false")

    _number(cache.ttl_minutes, "cache.ttl_minutes")
    _number(cache.auto_refresh_interval_minutes, "cache.auto_refresh_interval_minutes")
    _optional_hour(notification.silent_start_hour, "silent_start_hour")
    _optional_hour(notification.silent_end_hour, "silent_end_hour")

    timeout = data.get("fetch_timeout_seconds", Settings.fetch_timeout_seconds)
    return Settings(
        cache=cache,
        notification=notification,
        github_token=token,
        fetch_timeout_seconds=_number(timeout, "fetch_timeout_seconds"),
    )


# -------------------------------
# Validation
# -------------------------------


def validate_settings(settings: Settings) -> None:
    """Check value ranges.

    Raises:
        SchedulerMisconfiguredError: If auto refresh is enabled with a
            non-positive interval.
        ConfigError: For any other out-of-range value.

    """
    cache = settings.cache
    if cache.ttl_minutes < 0:
        raise ConfigError(f"cache.ttl_minutes must be >= 0, got {cache.ttl_minutes}")
    if cache.auto_refresh_enabled and cache.auto_refresh_interval_minutes <= 0:
        raise SchedulerMisconfiguredError(
            "cache.auto_refresh_interval_minutes must be > 0 when auto refresh "
            f"is enabled, got {cache.auto_refresh_interval_minutes}"
        )

    notification = settings.notification
    for key in ("silent_start_hour", "silent_end_hour"):
        hour = getattr(notification, key)
        if hour is not None and not 0 <= hour <= 23:
            raise ConfigError(f"notification.{key} must be between 0 and 23, got {hour}")

    if settings.fetch_timeout_seconds <= 0:
        raise ConfigError(
            f"fetch_timeout_seconds must be > 0, got {settings.fetch_timeout_seconds}"
        )


def resolve_token(token: str | None) -> str | None:
    """Expand a "${VAR}" token from the environment.

    Returns:
        The literal token, the environment value, or None if the variable is
            unset or the token is empty.

    """
    if not token:
        return None
    if token.startswith("${") and token.endswith("}"):
        return os.environ.get(token[2:-1]) or None
    return token


# -------------------------------
# Public API
# -------------------------------


def load_settings(path: Path) -> Settings:
    """Load settings from a YAML file, merged over the defaults.

    Args:
        path: Settings file. A missing file yields the defaults.

    Returns:
        Validated settings.

    Raises:
        ConfigError: On parse errors, unknown keys or invalid values.

    Example:
        ```python
        from pathlib import Path
        from vertrack.config import load_settings

        settings = load_settings(Path("vertrack.yaml"))
        print(settings.cache.ttl_minutes)
        ```

    """
    from vertrack.logging import get_global_logger

    logger = get_global_logger()

    if not path.exists():
        logger.verbose("CONFIG", f"Settings file not found, using defaults: {path}")
        return Settings()

    data = _load_yaml_file(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file must contain a mapping: {path}")

    merged = _deep_merge_dicts(default_settings_dict(), data)
    settings = settings_from_dict(merged)
    validate_settings(settings)
    logger.verbose("CONFIG", f"Loaded settings from {path}")
    return settings


def save_settings(settings: Settings, path: Path) -> None:
    """Write settings to a YAML file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(settings_to_dict(settings), f, sort_keys=False)
