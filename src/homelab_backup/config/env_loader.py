"""Environment loading for backup workflows.

Values are merged in deterministic order (low -> high precedence):
1) .env file (explicit path, or ./.env when present)
2) OS environment variables
3) Explicit overrides

The typed accessors turn raw strings into settings and raise
ConfigurationError for values that cannot be parsed.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import dotenv_values

from homelab_backup.exceptions import ConfigurationError

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


class EnvLoader:
    """Load environment-style key/value pairs with .env support."""

    def __init__(self, env_file: Optional[Path | str] = None) -> None:
        self.env_file = Path(env_file) if env_file else None

    def load(self, overrides: Optional[Mapping[str, str]] = None) -> MutableMapping[str, str]:
        """Merge .env file, process environment and overrides into one mapping."""
        data: MutableMapping[str, str] = {}

        env_path = self.env_file or Path.cwd() / ".env"
        if env_path.exists():
            file_values = dotenv_values(env_path)
            data.update({k: v for k, v in file_values.items() if v is not None})
        elif self.env_file is not None:
            raise ConfigurationError(
                "ENV_FILE_NOT_FOUND",
                f"Environment file not found: {env_path}",
                details={"env_file": str(env_path)},
            )

        data.update(os.environ)

        if overrides:
            data.update({k: str(v) for k, v in overrides.items()})

        return data


def env_str(env: Mapping[str, str], name: str, default: str = "") -> str:
    """Return a stripped string setting, ``default`` when unset or blank."""
    value = env.get(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def env_int(env: Mapping[str, str], name: str, default: int) -> int:
    """Return an integer setting, ``default`` when unset or blank."""
    raw = env_str(env, name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(
            "INVALID_SETTING",
            f"{name} must be an integer, got {raw!r}",
            details={"variable": name},
        ) from exc


def env_float(env: Mapping[str, str], name: str) -> Optional[float]:
    """Return an optional float setting, None when unset or blank."""
    raw = env_str(env, name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(
            "INVALID_SETTING",
            f"{name} must be a number, got {raw!r}",
            details={"variable": name},
        ) from exc


def env_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    """Return a boolean setting accepting true/false, yes/no, on/off, 1/0."""
    value = env.get(name)
    if value is None:
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigurationError(
        "INVALID_SETTING",
        f"{name} must be a boolean, got {value!r}",
        details={"variable": name},
    )


__all__ = ["EnvLoader", "env_bool", "env_float", "env_int", "env_str"]
