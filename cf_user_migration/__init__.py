"""cf-user-migration: move UAA users and their org/space roles between Cloud Foundry deployments."""

from cf_user_migration.errors import (
    AmbiguousError,
    AuthError,
    ConfigError,
    GuardError,
    MigrationError,
    NotFoundError,
    NotLoggedInError,
    ParseError,
    TransportError,
)
from cf_user_migration.orchestrator import MigrationOrchestrator
from cf_user_migration.snapshot import MigrationSnapshot, UserMigrationRecord

__version__ = "1.0.0"

__all__ = [
    "MigrationOrchestrator",
    "MigrationSnapshot",
    "UserMigrationRecord",
    "MigrationError",
    "AmbiguousError",
    "AuthError",
    "ConfigError",
    "GuardError",
    "NotFoundError",
    "NotLoggedInError",
    "ParseError",
    "TransportError",
]
