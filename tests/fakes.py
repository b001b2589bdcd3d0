"""In-memory Cloud Controller and UAA stand-ins for orchestrator tests.

They expose the same methods as CloudControllerClient / UaaClient and return
the same pydantic models, so the core cannot tell them apart.
"""

from __future__ import annotations

import uuid
from collections import Counter
from typing import Dict, List, Optional, Set, Tuple

from cf_user_migration.errors import MigrationError, TransportError
from cf_user_migration.models import (
    OrgResource,
    Page,
    ScimUser,
    SpaceResource,
    UserEmail,
    UserResource,
    UserSummaryResource,
)
from cf_user_migration.roles import RoleKind

SOURCE_API = "https://api.sys.source.example.com"
TARGET_API = "https://api.sys.target.example.com"

_ORG_CATEGORIES = {
    RoleKind.ORG_MANAGER: "managed_organizations",
    RoleKind.ORG_BILLING_MANAGER: "billing_managed_organizations",
    RoleKind.ORG_AUDITOR: "audited_organizations",
}

_SPACE_CATEGORIES = {
    RoleKind.SPACE_DEVELOPER: "spaces",
    RoleKind.SPACE_MANAGER: "managed_spaces",
    RoleKind.SPACE_AUDITOR: "audited_spaces",
}


def _guid() -> str:
    return str(uuid.uuid4())


class _Failures:
    """Programmable failures: fail(method, key) makes matching calls raise.

    key "*" matches every call of the method; times limits how often it fires.
    """

    def __init__(self) -> None:
        self._failures: Dict[Tuple[str, str], List] = {}
        self.calls: Counter = Counter()
        self.closed = False

    def fail(
        self,
        method: str,
        key: str = "*",
        error: Optional[MigrationError] = None,
        times: Optional[int] = None,
    ) -> None:
        self._failures[(method, key)] = [error or TransportError(f"{method} {key} failed", 500), times]

    def _call(self, method: str, key: str) -> None:
        self.calls[method] += 1
        entry = self._failures.get((method, key)) or self._failures.get((method, "*"))
        if entry is None or entry[1] == 0:
            return
        if entry[1] is not None:
            entry[1] -= 1
        raise entry[0]

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeCloudController(_Failures):
    def __init__(self) -> None:
        super().__init__()
        self.orgs: Dict[str, str] = {}  # guid -> name
        self.spaces: Dict[str, Tuple[str, str]] = {}  # guid -> (org guid, name)
        self.users: Dict[str, Optional[str]] = {}  # guid -> username
        self.members: Set[Tuple[str, str]] = set()  # (org guid, user guid)
        self.org_roles: Set[Tuple[str, str, RoleKind]] = set()
        self.space_roles: Set[Tuple[str, str, RoleKind]] = set()
        self.membership_grants: List[Tuple[str, str]] = []

    # ── Fixture builders ─────────────────────────────────────────

    def add_org(self, name: str) -> str:
        guid = _guid()
        self.orgs[guid] = name
        return guid

    def add_space(self, org_guid: str, name: str) -> str:
        guid = _guid()
        self.spaces[guid] = (org_guid, name)
        return guid

    def add_user(self, username: Optional[str]) -> str:
        guid = _guid()
        self.users[guid] = username
        return guid

    def grant_org(self, org_guid: str, user_guid: str, role: RoleKind) -> None:
        self.members.add((org_guid, user_guid))
        self.org_roles.add((org_guid, user_guid, role))

    def grant_space(self, space_guid: str, user_guid: str, role: RoleKind) -> None:
        self.members.add((self.spaces[space_guid][0], user_guid))
        self.space_roles.add((space_guid, user_guid, role))

    def role_names(self, guid_to_username: Dict[str, str]) -> Set[Tuple[str, ...]]:
        """Every role as (username, org name[, space name], role) for comparisons."""
        out: Set[Tuple[str, ...]] = set()
        for org_guid, user_guid, role in self.org_roles:
            out.add((guid_to_username[user_guid], self.orgs[org_guid], role.value))
        for space_guid, user_guid, role in self.space_roles:
            org_guid, space_name = self.spaces[space_guid]
            out.add((guid_to_username[user_guid], self.orgs[org_guid], space_name, role.value))
        return out

    def _org_json(self, guid: str) -> dict:
        return {
            "metadata": {"guid": guid, "url": f"/v2/organizations/{guid}"},
            "entity": {
                "name": self.orgs[guid],
                "spaces": [self._space_json(s) for s, (o, _) in self.spaces.items() if o == guid],
            },
        }

    def _space_json(self, guid: str) -> dict:
        return {"metadata": {"guid": guid}, "entity": {"name": self.spaces[guid][1]}}

    # ── Collaborator interface ───────────────────────────────────

    def list_users(self) -> List[UserResource]:
        self._call("list_users", "")
        return [
            UserResource.model_validate({"metadata": {"guid": g}, "entity": {"username": u}})
            for g, u in self.users.items()
        ]

    def get_user_summary(self, user_guid: str) -> UserSummaryResource:
        self._call("get_user_summary", user_guid)
        entity: Dict[str, list] = {
            "organizations": [self._org_json(o) for o, u in sorted(self.members) if u == user_guid],
        }
        for role, key in _ORG_CATEGORIES.items():
            entity[key] = [
                self._org_json(o) for o, u, r in sorted(self.org_roles) if u == user_guid and r is role
            ]
        for role, key in _SPACE_CATEGORIES.items():
            entity[key] = [
                self._space_json(s) for s, u, r in sorted(self.space_roles) if u == user_guid and r is role
            ]
        return UserSummaryResource.model_validate({"metadata": {"guid": user_guid}, "entity": entity})

    def find_organizations(self, name: str) -> Page[OrgResource]:
        self._call("find_organizations", name)
        found = [self._org_json(g) for g, n in self.orgs.items() if n == name]
        return Page[OrgResource].model_validate({"total_results": len(found), "resources": found})

    def find_spaces(self, org_guid: str, name: str) -> Page[SpaceResource]:
        self._call("find_spaces", f"{org_guid}/{name}")
        found = [self._space_json(g) for g, (o, n) in self.spaces.items() if o == org_guid and n == name]
        return Page[SpaceResource].model_validate({"total_results": len(found), "resources": found})

    def create_user(self, guid: str) -> UserResource:
        self._call("create_user", guid)
        self.users[guid] = None
        return UserResource.model_validate({"metadata": {"guid": guid}, "entity": {}})

    def associate_user_with_org(self, org_guid: str, user_guid: str) -> None:
        self._call("associate_user_with_org", f"{org_guid}/{user_guid}")
        self.membership_grants.append((org_guid, user_guid))
        self.members.add((org_guid, user_guid))

    def set_org_role(self, org_guid: str, user_guid: str, role: RoleKind) -> None:
        self._call("set_org_role", f"{org_guid}/{role.value}")
        if (org_guid, user_guid) not in self.members:
            raise TransportError("user is not a member of the org", 400, {"error_code": "CF-InvalidRelation"})
        self.org_roles.add((org_guid, user_guid, role))

    def set_space_role(self, space_guid: str, user_guid: str, role: RoleKind) -> None:
        self._call("set_space_role", f"{space_guid}/{role.value}")
        if (self.spaces[space_guid][0], user_guid) not in self.members:
            raise TransportError("user is not a member of the org", 400, {"error_code": "CF-InvalidRelation"})
        self.space_roles.add((space_guid, user_guid, role))


class FakeUaa(_Failures):
    def __init__(self) -> None:
        super().__init__()
        self.users: List[ScimUser] = []

    def add_user(self, username: str, external_id: Optional[str], email: Optional[str] = None) -> ScimUser:
        emails = [UserEmail(value=email or f"{username}@example.com", primary=True)]
        user = ScimUser(id=_guid(), username=username, external_id=external_id, origin="ldap", emails=emails)
        self.users.append(user)
        return user

    def list_users(self) -> List[ScimUser]:
        self._call("list_users", "")
        return list(self.users)

    def create_user(self, username: str, external_id: str, emails, origin: str = "ldap") -> str:
        self._call("create_user", username)
        user = ScimUser(
            id=_guid(), username=username, external_id=external_id, origin=origin, emails=list(emails)
        )
        self.users.append(user)
        return user.id

    def username_by_id(self) -> Dict[str, str]:
        return {u.id: u.username for u in self.users}
