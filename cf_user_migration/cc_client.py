"""CloudControllerClient: the Cloud Controller v2 API collaborator."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Type

import httpx

from cf_user_migration.errors import ParseError, TransportError
from cf_user_migration.models import (
    M,
    OrgResource,
    Page,
    SpaceResource,
    UserResource,
    UserSummaryResource,
    parse_model,
)
from cf_user_migration.roles import RoleKind
from cf_user_migration.transport import ApiTransport

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 100

_ORG_ROLE_PATHS: Dict[RoleKind, str] = {
    RoleKind.ORG_MANAGER: "managers",
    RoleKind.ORG_BILLING_MANAGER: "billing_managers",
    RoleKind.ORG_AUDITOR: "auditors",
}

_SPACE_ROLE_PATHS: Dict[RoleKind, str] = {
    RoleKind.SPACE_DEVELOPER: "developers",
    RoleKind.SPACE_MANAGER: "managers",
    RoleKind.SPACE_AUDITOR: "auditors",
}


class CloudControllerClient(ApiTransport):
    """Synchronous client for the Cloud Controller v2 API.

    Usage::

        cc = CloudControllerClient("https://api.sys.example.com", access_token="bearer ...")
        for user in cc.list_users():
            print(user.entity.username)
    """

    def __init__(
        self,
        api_url: str,
        access_token: Optional[str] = None,
        timeout: float = 60.0,
        retries: int = 0,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(
            api_url,
            token=access_token,
            timeout=timeout,
            retries=retries,
            verify=verify,
            transport=transport,
        )

    def _get_page(self, path: str, model: Type[M], what: str, **kwargs) -> Page[M]:
        resp = self._request("GET", path, **kwargs)
        return parse_model(Page[model], self._json(resp), what)

    def _put_association(self, path: str) -> None:
        resp = self._request("PUT", path)
        body = self._json(resp)
        if not isinstance(body, dict):
            raise ParseError(f"PUT {path} returned {type(body).__name__}, expected an object")
        if "error_code" in body:
            raise TransportError(
                body.get("description") or str(body["error_code"]),
                resp.status_code,
                body,
            )

    # ── Reads ────────────────────────────────────────────────────

    def list_users(self) -> List[UserResource]:
        """GET /v2/users, following next_url across every page."""
        users: List[UserResource] = []
        page = self._get_page(
            "/v2/users",
            UserResource,
            "list users",
            params={"results-per-page": RESULTS_PER_PAGE},
        )
        users.extend(page.resources)
        while page.next_url:
            page = self._get_page(page.next_url, UserResource, "list users")
            users.extend(page.resources)
        logger.debug("listed %d Cloud Controller users", len(users))
        return users

    def get_user_summary(self, user_guid: str) -> UserSummaryResource:
        """GET /v2/users/:guid/summary"""
        resp = self._request("GET", f"/v2/users/{user_guid}/summary")
        return parse_model(UserSummaryResource, self._json(resp), "user summary")

    def find_organizations(self, name: str) -> Page[OrgResource]:
        """GET /v2/organizations?q=name:<name>"""
        return self._get_page(
            "/v2/organizations",
            OrgResource,
            "find organization",
            params={"q": f"name:{name}"},
        )

    def find_spaces(self, org_guid: str, name: str) -> Page[SpaceResource]:
        """GET /v2/spaces?q=name:<name>&q=organization_guid:<guid>"""
        return self._get_page(
            "/v2/spaces",
            SpaceResource,
            "find space",
            params=[("q", f"name:{name}"), ("q", f"organization_guid:{org_guid}")],
        )

    # ── Writes ───────────────────────────────────────────────────

    def create_user(self, guid: str) -> UserResource:
        """POST /v2/users: the guid is the UAA user id."""
        resp = self._request("POST", "/v2/users", json={"guid": guid})
        return parse_model(UserResource, self._json(resp), "create user")

    def associate_user_with_org(self, org_guid: str, user_guid: str) -> None:
        """PUT /v2/organizations/:org/users/:user"""
        self._put_association(f"/v2/organizations/{org_guid}/users/{user_guid}")

    def set_org_role(self, org_guid: str, user_guid: str, role: RoleKind) -> None:
        """PUT /v2/organizations/:org/<managers|billing_managers|auditors>/:user"""
        segment = _ORG_ROLE_PATHS[role]
        self._put_association(f"/v2/organizations/{org_guid}/{segment}/{user_guid}")

    def set_space_role(self, space_guid: str, user_guid: str, role: RoleKind) -> None:
        """PUT /v2/spaces/:space/<developers|managers|auditors>/:user"""
        segment = _SPACE_ROLE_PATHS[role]
        self._put_association(f"/v2/spaces/{space_guid}/{segment}/{user_guid}")
