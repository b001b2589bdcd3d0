"""Structured exceptions for cf-user-migration."""

from __future__ import annotations

from typing import Any, Optional


class MigrationError(Exception):
    """Base exception for all migration errors."""


class ConfigError(MigrationError):
    """Invalid or missing configuration."""


class NotLoggedInError(MigrationError):
    """The cf CLI has no target or access token."""


class NotFoundError(MigrationError):
    """No organization, space or identity matches a name."""


class AmbiguousError(MigrationError):
    """More than one organization or space matches a name."""


class ParseError(MigrationError):
    """A response body or snapshot did not match the expected shape."""


class GuardError(MigrationError):
    """Import target is the deployment the snapshot was exported from."""


class TransportError(MigrationError):
    """A request failed: network error, non-2xx status, or an error payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        detail: Any = None,
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.detail = detail
        if status_code is not None:
            super().__init__(f"[{status_code}] {message}")
        else:
            super().__init__(message)


class AuthError(TransportError):
    """401/403: missing, expired or insufficient token."""
    pass
