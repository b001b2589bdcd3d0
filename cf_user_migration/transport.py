"""Shared httpx plumbing for the Cloud Controller and UAA clients."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from cf_user_migration.auth import build_auth_headers
from cf_user_migration.errors import AuthError, ParseError, TransportError
from cf_user_migration.utils import generate_request_id, retry_with_backoff

logger = logging.getLogger(__name__)


class ApiTransport:
    """Synchronous JSON-over-HTTP client with the project's error mapping.

    Every call blocks until it completes. Timeouts belong to httpx and
    surface as TransportError.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 60.0,
        retries: int = 0,
        verify: bool = True,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._retries = retries
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=self._timeout,
            verify=verify,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Internal helpers ─────────────────────────────────────────

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers: Dict[str, str] = {"Accept": "application/json"}
        headers.update(build_auth_headers(self._token))
        if extra:
            headers.update(extra)
        headers.setdefault("X-Vcap-Request-Id", generate_request_id())
        return headers

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.status_code < 400:
            return
        try:
            body = resp.json()
        except ValueError:
            body = resp.text

        if isinstance(body, dict):
            message = (
                body.get("description")
                or body.get("error_description")
                or body.get("message")
                or body.get("error")
                or str(body)
            )
        else:
            message = str(body) or resp.reason_phrase

        if resp.status_code in (401, 403):
            raise AuthError(message, resp.status_code, body)
        raise TransportError(message, resp.status_code, body)

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = self._headers(kwargs.pop("headers", None))

        def do() -> httpx.Response:
            return self._client.request(method, path, headers=headers, **kwargs)

        logger.debug("%s %s", method, path)
        try:
            if self._retries > 0:
                resp = retry_with_backoff(do, retries=self._retries)
            else:
                resp = do()
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e}") from e
        self._raise_for_status(resp)
        return resp

    def _json(self, resp: httpx.Response) -> Any:
        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise ParseError(f"{resp.request.method} {resp.request.url} returned a non-JSON body: {e}") from e
