"""Reads the cf CLI's config.json to find the targeted API and its token."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from cf_user_migration.errors import ConfigError, NotLoggedInError


def config_path(cf_home: Optional[str] = None) -> Path:
    """$CF_HOME/.cf/config.json, defaulting CF_HOME to the home directory."""
    home = cf_home or os.environ.get("CF_HOME") or str(Path.home())
    return Path(home) / ".cf" / "config.json"


def derive_uaa_url(api_url: str) -> str:
    """https://api.sys.example.com -> https://uaa.sys.example.com"""
    return api_url.replace("api", "uaa", 1)


@dataclass(frozen=True)
class CfConfig:
    """The subset of the cf CLI state the migration needs."""

    target: str = ""
    access_token: str = ""
    uaa_endpoint: str = ""
    ssl_disabled: bool = False

    @property
    def is_logged_in(self) -> bool:
        return bool(self.target and self.access_token)

    def __repr__(self) -> str:
        token = "***" if self.access_token else ""
        return (
            f"CfConfig(target={self.target!r}, access_token={token!r}, "
            f"uaa_endpoint={self.uaa_endpoint!r}, ssl_disabled={self.ssl_disabled})"
        )

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CfConfig":
        return cls(
            target=d.get("Target") or "",
            access_token=d.get("AccessToken") or "",
            uaa_endpoint=d.get("UaaEndpoint") or "",
            ssl_disabled=bool(d.get("SSLDisabled", False)),
        )

    @classmethod
    def load(cls, cf_home: Optional[str] = None) -> "CfConfig":
        """Load the cf CLI config. A missing file means nobody ever logged in."""
        p = config_path(cf_home)
        if not p.exists():
            return cls()
        try:
            with open(p, encoding="utf-8") as f:
                raw = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"cf config {p} is not valid JSON: {e}") from e
        if not isinstance(raw, dict):
            raise ConfigError(f"cf config {p} must be a JSON object")
        return cls.from_dict(raw)

    def require_login(self) -> "CfConfig":
        if not self.is_logged_in:
            raise NotLoggedInError("You are not logged in. Please login using 'cf login' and try again")
        return self
