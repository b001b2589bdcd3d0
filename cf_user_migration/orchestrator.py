"""Export and import orchestration.

Export reads Cloud Controller users and their role memberships, pairs each
with its UAA identity and produces a MigrationSnapshot. Import replays a
snapshot against another deployment: create the identity, create the CC
user, grant base org membership once per org, then grant each role.

Everything runs sequentially. Failures are caught and reported per role and
per record; only the self-import guard aborts a whole run.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from cf_user_migration.errors import AmbiguousError, GuardError, MigrationError, NotFoundError
from cf_user_migration.extractor import extract_roles
from cf_user_migration.memberships import MembershipTracker
from cf_user_migration.models import OrgResource, ScimUser
from cf_user_migration.report import MigrationReport, Outcome, RecordOutcome
from cf_user_migration.resolver import ResourceResolver
from cf_user_migration.roles import OrgRole, SpaceRole
from cf_user_migration.snapshot import MigrationSnapshot, UserMigrationRecord
from cf_user_migration.utils import normalize_url

logger = logging.getLogger(__name__)


class MigrationOrchestrator:
    """Drives one deployment's side of a migration.

    Args:
        cc: Cloud Controller collaborator (see CloudControllerClient).
        uaa: connected UAA collaborator (see UaaClient).
        api_url: API endpoint of the deployment cc talks to.
        origin: identity provider origin given to identities created on import.
    """

    def __init__(self, cc, uaa, api_url: str, origin: str = "ldap") -> None:
        self._cc = cc
        self._uaa = uaa
        self._api_url = api_url
        self._origin = origin

    # ── Export ───────────────────────────────────────────────────

    def export_snapshot(self) -> Tuple[MigrationSnapshot, MigrationReport]:
        """Read every CC user with a username and a matching UAA identity.

        Listing UAA identities or CC users is mandatory; failures there
        propagate. Per-user failures skip that user.
        """
        report = MigrationReport(operation="export")
        identities = self._index_identities(self._uaa.list_users())
        users = self._cc.list_users()
        logger.info("exporting from %s: %d CC users, %d UAA users", self._api_url, len(users), len(identities))

        migrations: List[UserMigrationRecord] = []
        for user in users:
            username = user.entity.username
            if not username:
                self._skip(report, RecordOutcome(user.metadata.guid), "user has no username in Cloud Controller")
                continue

            outcome = RecordOutcome(username)
            try:
                summary = self._cc.get_user_summary(user.metadata.guid)
            except MigrationError as e:
                self._skip(report, outcome, f"failed to fetch user summary: {e}")
                continue

            extraction = extract_roles(summary.entity)
            for gap in extraction.gaps:
                outcome.add_role(str(gap), Outcome.SKIPPED, gap.reason)

            identity = identities.get(username)
            if identity is None:
                self._skip(report, outcome, "no UAA user with this username")
                continue
            if not identity.external_id:
                self._skip(report, outcome, "UAA user has no external id")
                continue

            migrations.append(
                UserMigrationRecord(
                    username=username,
                    external_id=identity.external_id,
                    emails=identity.emails,
                    org_roles=extraction.org_roles,
                    space_roles=extraction.space_roles,
                )
            )
            report.add(outcome.finish())
            logger.info(
                "exported %s: %d org roles, %d space roles",
                username, len(extraction.org_roles), len(extraction.space_roles),
            )

        snapshot = MigrationSnapshot(cf_api_url=self._api_url, user_migrations=migrations)
        logger.info("export done: %d exported, %d skipped", report.processed, report.skipped)
        return snapshot, report

    @staticmethod
    def _index_identities(identities: List[ScimUser]) -> Dict[str, ScimUser]:
        # Exact username match; the first identity wins when origins share a name.
        by_name: Dict[str, ScimUser] = {}
        for identity in identities:
            by_name.setdefault(identity.username, identity)
        return by_name

    @staticmethod
    def _skip(report: MigrationReport, outcome: RecordOutcome, reason: str) -> None:
        outcome.outcome = Outcome.SKIPPED
        outcome.reason = reason
        report.add(outcome)
        logger.warning("skipping user %s: %s", outcome.username, reason)

    # ── Import ───────────────────────────────────────────────────

    def import_snapshot(
        self,
        snapshot: MigrationSnapshot,
        resolver: Optional[ResourceResolver] = None,
        memberships: Optional[MembershipTracker] = None,
    ) -> MigrationReport:
        """Replay a snapshot against this deployment.

        Raises GuardError, before touching any record, if the snapshot was
        exported from this deployment. A fresh resolver and membership
        tracker are built for every call unless given.
        """
        if normalize_url(snapshot.cf_api_url) == normalize_url(self._api_url):
            raise GuardError(
                f"Snapshot was exported from {snapshot.cf_api_url}; refusing to import it into the same deployment"
            )
        if resolver is None:
            resolver = ResourceResolver(self._cc)
        if memberships is None:
            memberships = MembershipTracker()

        report = MigrationReport(operation="import")
        logger.info(
            "importing %d users from %s into %s",
            len(snapshot.user_migrations), snapshot.cf_api_url, self._api_url,
        )
        for record in snapshot.user_migrations:
            outcome = report.add(self._import_record(record, resolver, memberships))
            if outcome.outcome is Outcome.SUCCESS:
                logger.info("imported %s", record.username)
            elif outcome.outcome is Outcome.PARTIAL:
                logger.warning(
                    "imported %s with %d failed roles", record.username, len(outcome.failed_roles)
                )

        logger.info(
            "import done: %d processed (%d partial), %d failed",
            report.processed, report.count(Outcome.PARTIAL), report.failed,
        )
        return report

    def _import_record(
        self,
        record: UserMigrationRecord,
        resolver: ResourceResolver,
        memberships: MembershipTracker,
    ) -> RecordOutcome:
        outcome = RecordOutcome(record.username)

        try:
            user_guid = self._uaa.create_user(
                record.username, record.external_id, record.emails, origin=self._origin
            )
        except MigrationError as e:
            return self._fail(outcome, f"failed to create UAA user: {e}")

        try:
            self._cc.create_user(user_guid)
        except MigrationError as e:
            return self._fail(outcome, f"failed to create Cloud Controller user {user_guid}: {e}")

        for org_role in record.org_roles:
            self._replay_org_role(outcome, user_guid, org_role, resolver, memberships)
        for space_role in record.space_roles:
            self._replay_space_role(outcome, user_guid, space_role, resolver, memberships)

        return outcome.finish()

    @staticmethod
    def _fail(outcome: RecordOutcome, reason: str) -> RecordOutcome:
        outcome.outcome = Outcome.FAILED
        outcome.reason = reason
        logger.warning("failed user %s: %s", outcome.username, reason)
        return outcome

    def _replay_org_role(
        self,
        outcome: RecordOutcome,
        user_guid: str,
        role: OrgRole,
        resolver: ResourceResolver,
        memberships: MembershipTracker,
    ) -> None:
        try:
            org = resolver.resolve_organization(role.org_name)
            self._ensure_org_membership(user_guid, org, memberships)
            self._cc.set_org_role(org.metadata.guid, user_guid, role.role)
        except MigrationError as e:
            self._role_failed(outcome, str(role), e)
            return
        outcome.add_role(str(role), Outcome.SUCCESS)

    def _replay_space_role(
        self,
        outcome: RecordOutcome,
        user_guid: str,
        role: SpaceRole,
        resolver: ResourceResolver,
        memberships: MembershipTracker,
    ) -> None:
        try:
            org = resolver.resolve_organization(role.org_name)
            space = resolver.resolve_space(org.metadata.guid, role.space_name)
            self._ensure_org_membership(user_guid, org, memberships)
            self._cc.set_space_role(space.metadata.guid, user_guid, role.role)
        except MigrationError as e:
            self._role_failed(outcome, str(role), e)
            return
        outcome.add_role(str(role), Outcome.SUCCESS)

    def _ensure_org_membership(
        self, user_guid: str, org: OrgResource, memberships: MembershipTracker
    ) -> None:
        org_guid = org.metadata.guid
        if memberships.has_org_membership(user_guid, org_guid):
            return
        self._cc.associate_user_with_org(org_guid, user_guid)
        memberships.record_org_membership(user_guid, org_guid)

    @staticmethod
    def _role_failed(outcome: RecordOutcome, role: str, error: MigrationError) -> None:
        # Unresolvable names skip the role; anything else is a failure.
        if isinstance(error, (NotFoundError, AmbiguousError)):
            status = Outcome.SKIPPED
        else:
            status = Outcome.FAILED
        outcome.add_role(role, status, str(error))
        logger.warning("user %s: %s %s: %s", outcome.username, role, status.value, error)
