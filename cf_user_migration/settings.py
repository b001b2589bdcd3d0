"""Migration settings.

Reads environment variables with defaults, optionally overlaid by a YAML
file whose keys are the field names below. Never exposes secrets in repr.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from cf_user_migration.errors import ConfigError


def _bool_env(key: str, default: bool) -> bool:
    """Parse a 0/1 env var to bool."""
    val = os.environ.get(key)
    if val is None:
        return default
    return val.strip() in ("1", "true", "yes", "True", "TRUE")


def _int_env(key: str, default: int) -> int:
    """Parse an int env var with fallback."""
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return int(val)
    except ValueError:
        return default


def _float_env(key: str, default: float) -> float:
    val = os.environ.get(key)
    if val is None:
        return default
    try:
        return float(val)
    except ValueError:
        return default


def _coerce(name: str, type_name: str, value: Any, source: str) -> Any:
    """Convert a YAML value to the field's declared type."""
    if type_name == "bool":
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ("1", "true", "yes", "0", "false", "no"):
            return value.strip().lower() in ("1", "true", "yes")
        if isinstance(value, int) and value in (0, 1):
            return bool(value)
        raise ConfigError(f"{name} in {source} must be a boolean, got {value!r}")
    converter = {"str": str, "int": int, "float": float}[type_name]
    if value is None or isinstance(value, (bool, dict, list)):
        raise ConfigError(f"{name} in {source} must be {type_name}, got {value!r}")
    try:
        return converter(value)
    except ValueError:
        raise ConfigError(f"{name} in {source} must be {type_name}, got {value!r}") from None


@dataclass(frozen=True)
class Settings:
    """Immutable migration configuration. Secrets are masked in repr."""

    # ── UAA ────────────────────────────────────────────────────────
    uaa_server_url: str = ""
    uaa_client_id: str = ""
    uaa_client_secret: str = ""
    uaa_origin: str = "ldap"

    # ── Transport ──────────────────────────────────────────────────
    timeout: float = 60.0
    retries: int = 0
    skip_ssl_validation: bool = False

    def __repr__(self) -> str:
        parts = []
        for f in fields(self):
            val = getattr(self, f.name)
            if f.name == "uaa_client_secret" and val:
                val = "***"
            parts.append(f"{f.name}={val!r}")
        return f"Settings({', '.join(parts)})"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            uaa_server_url=os.environ.get("UAA_SERVERURL", ""),
            uaa_client_id=os.environ.get("UAA_CLIENTID", ""),
            uaa_client_secret=os.environ.get("UAA_CLIENTSECRET", ""),
            uaa_origin=os.environ.get("UAA_ORIGIN", "ldap"),
            timeout=_float_env("CF_MIGRATION_TIMEOUT", 60.0),
            retries=_int_env("CF_MIGRATION_RETRIES", 0),
            skip_ssl_validation=_bool_env("CF_MIGRATION_SKIP_SSL_VALIDATION", False),
        )

    def merge_yaml(self, path: str) -> "Settings":
        """Overlay values from a YAML mapping; unknown keys are rejected."""
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"Config not found: {path}")
        with open(p, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"Config must be a YAML mapping: {path}")
        types = {f.name: f.type for f in fields(self)}
        unknown = sorted(set(raw) - set(types))
        if unknown:
            raise ConfigError(f"Unknown settings in {path}: {', '.join(unknown)}")
        values = {k: _coerce(k, types[k], v, path) for k, v in raw.items()}
        return replace(self, **values)

    def validate(self) -> None:
        """Raise ConfigError if invalid."""
        if not self.uaa_client_id:
            raise ConfigError("UAA_CLIENTID is required")
        if not self.uaa_client_secret:
            raise ConfigError("UAA_CLIENTSECRET is required")
        if self.retries < 0:
            raise ConfigError(f"retries must be >= 0, got {self.retries}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be > 0, got {self.timeout}")

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        if d["uaa_client_secret"]:
            d["uaa_client_secret"] = "***"
        return d


def load_settings(config_file: Optional[str] = None) -> Settings:
    """Environment settings, overlaid by config_file if given, validated."""
    settings = Settings.from_env()
    if config_file:
        settings = settings.merge_yaml(config_file)
    settings.validate()
    return settings
