"""The portable export artifact and its JSON format."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cf_user_migration.errors import ParseError
from cf_user_migration.io import read_json, write_json
from cf_user_migration.models import UserEmail
from cf_user_migration.roles import OrgRole, SpaceRole


class UserMigrationRecord(BaseModel):
    """One user, its external identity and every role it holds."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    username: str = Field(alias="Username", min_length=1)
    external_id: str = Field(alias="ExternalID", min_length=1)
    emails: List[UserEmail] = Field(default_factory=list, alias="Emails")
    org_roles: List[OrgRole] = Field(default_factory=list, alias="OrgRoles")
    space_roles: List[SpaceRole] = Field(default_factory=list, alias="SpaceRoles")


class MigrationSnapshot(BaseModel):
    """All migratable users of a deployment plus the API url they came from."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    cf_api_url: str = Field(alias="CfApiUrl", min_length=1)
    user_migrations: List[UserMigrationRecord] = Field(default_factory=list, alias="UserMigrations")

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Any) -> "MigrationSnapshot":
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"Invalid snapshot: {e}") from e

    @classmethod
    def load(cls, path: Union[str, Path]) -> "MigrationSnapshot":
        """Read a snapshot file. ``-`` reads stdin."""
        try:
            data = read_json(path)
        except json.JSONDecodeError as e:
            raise ParseError(f"Snapshot {path} is not valid JSON: {e}") from e
        return cls.from_dict(data)

    def save(self, path: Union[str, Path]) -> None:
        """Write the snapshot as indented JSON. ``-`` writes to stdout."""
        write_json(path, self.to_dict())
