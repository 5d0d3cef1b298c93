from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..snapshots.models import ComplianceVerdict, SnapshotPolicy, SnapshotRecord
from .evaluator import evaluate, utc_now


def report(
    records: Sequence[SnapshotRecord],
    policy: SnapshotPolicy,
    now: Optional[datetime] = None,
) -> List[ComplianceVerdict]:
    """One verdict per record, in input order.

    ``now`` is fixed once so every snapshot is aged against the same instant.
    """
    now = now or utc_now()
    return [evaluate(record, policy, now) for record in records]


@dataclass(frozen=True)
class ComplianceSummary:
    total: int
    compliant: int
    size_failures: int
    retention_failures: int

    @property
    def non_compliant(self) -> int:
        return self.total - self.compliant

    @classmethod
    def from_verdicts(cls, verdicts: Sequence[ComplianceVerdict]) -> "ComplianceSummary":
        return cls(
            total=len(verdicts),
            compliant=sum(1 for v in verdicts if v.compliant),
            size_failures=sum(1 for v in verdicts if not v.size_test_passed),
            retention_failures=sum(1 for v in verdicts if not v.retention_test_passed),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total": self.total,
            "compliant": self.compliant,
            "non_compliant": self.non_compliant,
            "size_failures": self.size_failures,
            "retention_failures": self.retention_failures,
        }
