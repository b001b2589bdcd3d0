"""Role vocabulary and normalized role assignments.

Assignments carry org/space *names*, never guids: guids differ between the
source and target deployments and are resolved at replay time.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RoleKind(str, Enum):
    """Closed set of roles that can be migrated."""

    ORG_MANAGER = "OrgManager"
    ORG_BILLING_MANAGER = "BillingManager"
    ORG_AUDITOR = "OrgAuditor"
    SPACE_DEVELOPER = "SpaceDeveloper"
    SPACE_MANAGER = "SpaceManager"
    SPACE_AUDITOR = "SpaceAuditor"

    @property
    def is_org_role(self) -> bool:
        return self in _ORG_ROLES

    @property
    def is_space_role(self) -> bool:
        return self in _SPACE_ROLES

    def __str__(self) -> str:
        return self.value


_ORG_ROLES = frozenset({RoleKind.ORG_MANAGER, RoleKind.ORG_BILLING_MANAGER, RoleKind.ORG_AUDITOR})
_SPACE_ROLES = frozenset({RoleKind.SPACE_DEVELOPER, RoleKind.SPACE_MANAGER, RoleKind.SPACE_AUDITOR})


class OrgRole(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    org_name: str = Field(alias="OrgName", min_length=1)
    role: RoleKind = Field(alias="RoleName")

    @field_validator("role")
    @classmethod
    def _org_family(cls, v: RoleKind) -> RoleKind:
        if not v.is_org_role:
            raise ValueError(f"{v} is not an organization role")
        return v

    def __str__(self) -> str:
        return f"{self.org_name} {self.role}"


class SpaceRole(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    org_name: str = Field(alias="OrgName", min_length=1)
    space_name: str = Field(alias="SpaceName", min_length=1)
    role: RoleKind = Field(alias="RoleName")

    @field_validator("role")
    @classmethod
    def _space_family(cls, v: RoleKind) -> RoleKind:
        if not v.is_space_role:
            raise ValueError(f"{v} is not a space role")
        return v

    def __str__(self) -> str:
        return f"{self.org_name} {self.space_name} {self.role}"
