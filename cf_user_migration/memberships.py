"""Tracks which (user, org) base memberships were granted during one import run."""

from __future__ import annotations

from typing import Set, Tuple


class MembershipTracker:
    """A user must be a bare org member before any org or space role in that
    org can be granted. Consult before granting; record only after success.
    """

    def __init__(self) -> None:
        self._granted: Set[Tuple[str, str]] = set()

    def has_org_membership(self, user_guid: str, org_guid: str) -> bool:
        return (user_guid, org_guid) in self._granted

    def record_org_membership(self, user_guid: str, org_guid: str) -> None:
        self._granted.add((user_guid, org_guid))

    def __len__(self) -> int:
        return len(self._granted)
