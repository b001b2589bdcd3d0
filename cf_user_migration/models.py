"""Pydantic models for Cloud Controller v2 and UAA SCIM payloads.

These mirror the wire format so the clients hand typed objects to the core.
Unknown fields are ignored.
"""

from __future__ import annotations

from typing import Any, Generic, List, Optional, Type, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from cf_user_migration.errors import ParseError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


# ── Cloud Controller ─────────────────────────────────────────────

class ResourceMetadata(BaseModel):
    guid: str
    url: Optional[str] = None


class Page(BaseModel, Generic[T]):
    """One page of a paged Cloud Controller listing."""

    total_results: int = 0
    total_pages: int = 0
    prev_url: Optional[str] = None
    next_url: Optional[str] = None
    resources: List[T] = Field(default_factory=list)


class UserEntity(BaseModel):
    username: Optional[str] = None
    admin: bool = False
    active: bool = False


class UserResource(BaseModel):
    metadata: ResourceMetadata
    entity: UserEntity


class SpaceEntity(BaseModel):
    name: str = ""


class SpaceResource(BaseModel):
    metadata: ResourceMetadata
    entity: SpaceEntity = Field(default_factory=SpaceEntity)


class OrgEntity(BaseModel):
    name: str = ""
    spaces: List[SpaceResource] = Field(default_factory=list)


class OrgResource(BaseModel):
    metadata: ResourceMetadata
    entity: OrgEntity = Field(default_factory=OrgEntity)


class UserSummary(BaseModel):
    """Every organization and space a user relates to, by category."""

    organizations: List[OrgResource] = Field(default_factory=list)
    managed_organizations: List[OrgResource] = Field(default_factory=list)
    billing_managed_organizations: List[OrgResource] = Field(default_factory=list)
    audited_organizations: List[OrgResource] = Field(
        default_factory=list,
        validation_alias=AliasChoices("audited_organizations", "audited_managed_organizations"),
    )
    spaces: List[SpaceResource] = Field(default_factory=list)
    managed_spaces: List[SpaceResource] = Field(default_factory=list)
    audited_spaces: List[SpaceResource] = Field(default_factory=list)


class UserSummaryResource(BaseModel):
    metadata: ResourceMetadata
    entity: UserSummary = Field(default_factory=UserSummary)


# ── UAA (SCIM) ───────────────────────────────────────────────────

class UserEmail(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str
    primary: bool = False


class ScimUser(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    username: str = Field(default="", alias="userName")
    external_id: Optional[str] = Field(default=None, alias="externalId")
    origin: Optional[str] = None
    emails: List[UserEmail] = Field(default_factory=list)


class ScimUserList(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resources: List[ScimUser] = Field(default_factory=list)
    start_index: int = Field(default=1, alias="startIndex")
    items_per_page: int = Field(default=0, alias="itemsPerPage")
    total_results: int = Field(default=0, alias="totalResults")


class AccessToken(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: Optional[int] = None
    scope: Optional[str] = None


def parse_model(model: Type[M], data: Any, what: str) -> M:
    """Validate a decoded body, raising ParseError on mismatch."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ParseError(f"Unexpected {what} response: {e}") from e
