"""Flattens a user summary into normalized org and space role assignments."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from cf_user_migration.models import OrgResource, SpaceResource, UserSummary
from cf_user_migration.roles import OrgRole, RoleKind, SpaceRole

logger = logging.getLogger(__name__)


@dataclass
class RoleGap:
    """A membership that cannot become a role assignment."""

    guid: str
    name: str
    role: RoleKind
    reason: str

    def __str__(self) -> str:
        return f"{self.name or self.guid} {self.role}"


@dataclass
class RoleExtraction:
    org_roles: List[OrgRole] = field(default_factory=list)
    space_roles: List[SpaceRole] = field(default_factory=list)
    gaps: List[RoleGap] = field(default_factory=list)


def extract_roles(summary: UserSummary) -> RoleExtraction:
    """Emit one role per (resource, category) the user appears in.

    A user both managing and auditing an org gets two OrgRoles; nothing is
    deduplicated across categories.
    """
    result = RoleExtraction()

    for orgs, kind in (
        (summary.managed_organizations, RoleKind.ORG_MANAGER),
        (summary.billing_managed_organizations, RoleKind.ORG_BILLING_MANAGER),
        (summary.audited_organizations, RoleKind.ORG_AUDITOR),
    ):
        for org in orgs:
            if not org.entity.name:
                _skip(result, org.metadata.guid, "", kind, "org has no name")
                continue
            result.org_roles.append(OrgRole(org_name=org.entity.name, role=kind))

    for spaces, kind in (
        (summary.spaces, RoleKind.SPACE_DEVELOPER),
        (summary.managed_spaces, RoleKind.SPACE_MANAGER),
        (summary.audited_spaces, RoleKind.SPACE_AUDITOR),
    ):
        for space in spaces:
            name = space.entity.name
            if not name:
                _skip(result, space.metadata.guid, "", kind, "space has no name")
                continue
            owner = find_owning_org(summary, space)
            if owner is None or not owner.entity.name:
                _skip(result, space.metadata.guid, name, kind, "owning org not found in user summary")
                continue
            result.space_roles.append(SpaceRole(org_name=owner.entity.name, space_name=name, role=kind))

    return result


def _skip(result: RoleExtraction, guid: str, name: str, kind: RoleKind, reason: str) -> None:
    gap = RoleGap(guid=guid, name=name, role=kind, reason=reason)
    logger.warning("skipping %s: %s", gap, reason)
    result.gaps.append(gap)


def find_owning_org(summary: UserSummary, space: SpaceResource) -> Optional[OrgResource]:
    """Spaces don't carry their parent; scan the user's orgs for one embedding this space guid."""
    for org in summary.organizations:
        for org_space in org.entity.spaces:
            if org_space.metadata.guid == space.metadata.guid:
                return org
    return None
