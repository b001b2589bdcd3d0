"""Name -> resource resolution for organizations and spaces, memoized per run.

A resolver holds guids of exactly one deployment. Build a new one for every
export or import run; never share one between runs.
"""

from __future__ import annotations

import logging
from typing import Dict, Tuple

from cf_user_migration.errors import AmbiguousError, NotFoundError
from cf_user_migration.models import OrgResource, SpaceResource

logger = logging.getLogger(__name__)


class ResourceResolver:
    """Resolves org names and (org guid, space name) pairs to resources.

    Successful lookups are cached for the lifetime of the resolver; failed
    lookups are not, so a later role naming the same org queries again.
    """

    def __init__(self, cc) -> None:
        self._cc = cc
        self._orgs: Dict[str, OrgResource] = {}
        self._spaces: Dict[Tuple[str, str], SpaceResource] = {}
        self.lookups = 0

    def resolve_organization(self, name: str) -> OrgResource:
        if name in self._orgs:
            return self._orgs[name]

        self.lookups += 1
        page = self._cc.find_organizations(name)
        matches = [o for o in page.resources if o.entity.name == name]
        if not matches:
            raise NotFoundError(f"Org '{name}' does not exist")
        if len(matches) > 1:
            raise AmbiguousError(f"Found {len(matches)} orgs matching name '{name}'")

        org = matches[0]
        self._orgs[name] = org
        logger.debug("resolved org %s -> %s", name, org.metadata.guid)
        return org

    def resolve_space(self, org_guid: str, name: str) -> SpaceResource:
        key = (org_guid, name)
        if key in self._spaces:
            return self._spaces[key]

        self.lookups += 1
        page = self._cc.find_spaces(org_guid, name)
        matches = [s for s in page.resources if s.entity.name == name]
        if not matches:
            raise NotFoundError(f"Space '{name}' in org {org_guid} does not exist")
        if len(matches) > 1:
            raise AmbiguousError(f"Found {len(matches)} spaces matching name '{name}' in org {org_guid}")

        space = matches[0]
        self._spaces[key] = space
        logger.debug("resolved space %s/%s -> %s", org_guid, name, space.metadata.guid)
        return space
