"""UaaClient: the UAA identity directory collaborator."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import httpx

from cf_user_migration.models import AccessToken, ScimUser, ScimUserList, UserEmail, parse_model
from cf_user_migration.transport import ApiTransport

logger = logging.getLogger(__name__)

USERS_PER_PAGE = 100


class UaaClient(ApiTransport):
    """Synchronous client for the UAA SCIM API.

    Authenticates with the client-credentials grant; the client needs
    ``scim.read`` to export and ``scim.write`` to import.

    Usage::

        uaa = UaaClient("https://uaa.sys.example.com", "admin", "secret").connect()
        identities = uaa.list_users()
    """

    def __init__(
        self,
        server_url: str,
        client_id: str,
        client_secret: str,
        timeout: float = 60.0,
        retries: int = 0,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(
            server_url,
            timeout=timeout,
            retries=retries,
            verify=verify,
            transport=transport,
        )
        self._client_id = client_id
        self._client_secret = client_secret

    @property
    def logged_in(self) -> bool:
        return self._token is not None

    def connect(self) -> "UaaClient":
        """POST /oauth/token with the client-credentials grant."""
        resp = self._request(
            "POST",
            "/oauth/token",
            data={
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "grant_type": "client_credentials",
                "response_type": "token",
            },
        )
        token = parse_model(AccessToken, self._json(resp), "token")
        self._token = token.access_token
        logger.debug("obtained UAA token for client %s", self._client_id)
        return self

    def list_users(self) -> List[ScimUser]:
        """GET /Users, paging with startIndex/count until totalResults is reached."""
        users: List[ScimUser] = []
        start = 1
        while True:
            resp = self._request(
                "GET",
                "/Users",
                params={"startIndex": start, "count": USERS_PER_PAGE},
            )
            page = parse_model(ScimUserList, self._json(resp), "list users")
            users.extend(page.resources)
            start += len(page.resources)
            if not page.resources or start > page.total_results:
                break
        logger.debug("listed %d UAA users", len(users))
        return users

    def create_user(
        self,
        username: str,
        external_id: str,
        emails: Iterable[UserEmail],
        origin: str = "ldap",
    ) -> str:
        """POST /Users: returns the id UAA assigned to the new identity."""
        body = {
            "userName": username,
            "externalId": external_id,
            "origin": origin,
            "emails": [e.model_dump() for e in emails],
        }
        resp = self._request("POST", "/Users", json=body)
        user = parse_model(ScimUser, self._json(resp), "create user")
        logger.debug("created UAA user %s (%s)", username, user.id)
        return user.id
