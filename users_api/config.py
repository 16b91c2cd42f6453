"""Configuration management for the users service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .service import DEFAULT_MIN_USER_AGE

_SETTINGS_KEY = "users_api"
_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service."""

    min_user_age: int = DEFAULT_MIN_USER_AGE
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8080

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        unknown = set(data.keys()) - {"min_user_age", "log_level", "host", "port"}
        if unknown:
            raise ValueError(f"Unknown configuration fields: {', '.join(sorted(unknown))}")

        defaults = Settings()
        return Settings(
            min_user_age=_parse_min_age(data.get("min_user_age", defaults.min_user_age)),
            log_level=_parse_log_level(data.get("log_level", defaults.log_level)),
            host=str(data.get("host", defaults.host)),
            port=_parse_port(data.get("port", defaults.port)),
        )


def _parse_min_age(value: object) -> int:
    if isinstance(value, bool):
        raise ValueError("min_user_age must be an integer")
    try:
        age = int(str(value).strip())
    except ValueError as exc:
        raise ValueError("min_user_age must be an integer") from exc
    if age < 0:
        raise ValueError("min_user_age must not be negative")
    return age


def _parse_log_level(value: object) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unsupported log level '{value}'")
    return level


def _parse_port(value: object) -> int:
    try:
        port = int(str(value).strip())
    except ValueError as exc:
        raise ValueError("port must be an integer") from exc
    if port < 1 or port > 65535:
        raise ValueError("port must be between 1 and 65535")
    return port


def load_settings(config_path: Path) -> Settings:
    """Load settings from a YAML file, falling back to defaults when it is absent."""
    if not config_path.exists():
        return Settings()

    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError("Configuration file must contain a mapping")
    section = raw.get(_SETTINGS_KEY) or {}
    if not isinstance(section, dict):
        raise ValueError(f"The '{_SETTINGS_KEY}' section must be a mapping")
    return Settings.from_dict(section)


def apply_environment(settings: Settings, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Return ``settings`` with ``USERS_API_*`` environment overrides applied."""
    env = os.environ if environ is None else environ
    overrides: Dict[str, object] = {}

    raw_age = env.get("USERS_API_MIN_AGE")
    if raw_age is not None and raw_age.strip():
        overrides["min_user_age"] = _parse_min_age(raw_age)

    raw_level = env.get("USERS_API_LOG_LEVEL")
    if raw_level is not None and raw_level.strip():
        overrides["log_level"] = _parse_log_level(raw_level)

    if not overrides:
        return settings
    return replace(settings, **overrides)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "settings.yaml").resolve(strict=False)
    return candidate


__all__ = ["Settings", "apply_environment", "load_settings", "resolve_config_path"]
