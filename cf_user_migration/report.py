"""Structured run results: one outcome per record, one per role.

The orchestrator fills a MigrationReport; the CLI decides how to show it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Outcome(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"  # record processed, some roles failed
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class RoleOutcome:
    role: str
    outcome: Outcome
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "outcome": self.outcome.value, "reason": self.reason}


@dataclass
class RecordOutcome:
    username: str
    outcome: Outcome = Outcome.SUCCESS
    reason: Optional[str] = None
    roles: List[RoleOutcome] = field(default_factory=list)

    @property
    def failed_roles(self) -> List[RoleOutcome]:
        return [r for r in self.roles if r.outcome is not Outcome.SUCCESS]

    def add_role(self, role: str, outcome: Outcome, reason: Optional[str] = None) -> RoleOutcome:
        entry = RoleOutcome(role=role, outcome=outcome, reason=reason)
        self.roles.append(entry)
        return entry

    def finish(self) -> "RecordOutcome":
        """Downgrade a successful record to PARTIAL if any role did not succeed."""
        if self.outcome is Outcome.SUCCESS and self.failed_roles:
            self.outcome = Outcome.PARTIAL
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "username": self.username,
            "outcome": self.outcome.value,
            "reason": self.reason,
            "roles": [r.to_dict() for r in self.roles],
        }


@dataclass
class MigrationReport:
    operation: str  # "export" | "import"
    records: List[RecordOutcome] = field(default_factory=list)

    def add(self, record: RecordOutcome) -> RecordOutcome:
        self.records.append(record)
        return record

    def count(self, outcome: Outcome) -> int:
        return sum(1 for r in self.records if r.outcome is outcome)

    @property
    def processed(self) -> int:
        """Records that went through, fully or partially."""
        return self.count(Outcome.SUCCESS) + self.count(Outcome.PARTIAL)

    @property
    def skipped(self) -> int:
        return self.count(Outcome.SKIPPED)

    @property
    def failed(self) -> int:
        return self.count(Outcome.FAILED)

    @property
    def has_failures(self) -> bool:
        return any(r.outcome in (Outcome.FAILED, Outcome.PARTIAL) for r in self.records)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "processed": self.processed,
            "skipped": self.skipped,
            "failed": self.failed,
            "records": [r.to_dict() for r in self.records],
        }
