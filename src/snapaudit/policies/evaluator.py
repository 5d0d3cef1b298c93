from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from ..errors import EvaluationError
from ..snapshots.models import ComplianceVerdict, SnapshotPolicy, SnapshotRecord

SECONDS_PER_DAY = 86400


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Naive datetimes are taken as local time, as datetime.astimezone does
    return value.astimezone(timezone.utc)


def age_in_days(created_at: datetime, now: datetime) -> int:
    """Whole days between ``created_at`` and ``now``, truncated toward zero."""
    elapsed = (_as_utc(now) - _as_utc(created_at)).total_seconds()
    return int(elapsed / SECONDS_PER_DAY)


def evaluate(
    record: SnapshotRecord,
    policy: Optional[SnapshotPolicy],
    now: Optional[datetime] = None,
) -> ComplianceVerdict:
    """Check one snapshot against the size and retention limits of a policy.

    Both limits are inclusive: a snapshot exactly at the limit passes.
    """
    if policy is None:
        raise EvaluationError(
            f"No policy set for snapshot '{record.snapshot_name}' of VM '{record.vm_name}'"
        )
    if record.created_at is None:
        raise EvaluationError(f"Snapshot '{record.snapshot_name}' has no creation time")
    if record.size_gb is None:
        raise EvaluationError(f"Snapshot '{record.snapshot_name}' has no size")

    age_days = age_in_days(record.created_at, now or utc_now())

    return ComplianceVerdict(
        vm_name=record.vm_name,
        snapshot_name=record.snapshot_name,
        size_test_passed=record.size_gb <= policy.max_size_gb,
        retention_test_passed=age_days <= policy.retention_days,
        age_days=age_days,
        size_gb=record.size_gb,
    )
