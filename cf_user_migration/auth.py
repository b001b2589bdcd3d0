"""Bearer token handling for the Cloud Controller and UAA clients."""

from __future__ import annotations

from typing import Dict, Optional


def build_auth_headers(token: Optional[str] = None) -> Dict[str, str]:
    """Return an Authorization header dict if a token is available.

    Accepts a bare token or the ``bearer <token>`` form the cf CLI stores.
    Returns empty dict if no token is configured.
    """
    if not token:
        return {}
    token = token.strip()
    if token.lower().startswith("bearer "):
        token = token[len("bearer "):].strip()
    return {"Authorization": f"Bearer {token}"}
