#!/usr/bin/env python3
"""Tests for snapshot policy evaluation."""

from datetime import datetime, timedelta, timezone

import pytest

from snapaudit.errors import EvaluationError
from snapaudit.policies import age_in_days, evaluate
from snapaudit.snapshots.models import SnapshotPolicy


class TestAgeInDays:
    """Test whole-day age computation."""

    @pytest.mark.parametrize("elapsed,expected", [
        (timedelta(0), 0),
        (timedelta(hours=23, minutes=59), 0),
        (timedelta(days=1), 1),
        (timedelta(days=6, hours=23), 6),
        (timedelta(days=30, seconds=1), 30),
    ])
    def test_truncates_fractional_days(self, fixed_now, elapsed, expected):
        assert age_in_days(fixed_now - elapsed, fixed_now) == expected

    def test_future_creation_truncates_toward_zero(self, fixed_now):
        assert age_in_days(fixed_now + timedelta(hours=12), fixed_now) == 0
        assert age_in_days(fixed_now + timedelta(days=2, hours=1), fixed_now) == -2

    def test_mixed_timezones(self):
        now = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        created = datetime(2026, 2, 27, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert age_in_days(created, now) == 2


class TestEvaluate:
    """Test the size and retention checks."""

    def test_compliant_snapshot(self, make_record, policy, fixed_now):
        verdict = evaluate(make_record(days_old=3, size_gb=5), policy, fixed_now)
        assert verdict.size_test_passed is True
        assert verdict.retention_test_passed is True
        assert verdict.compliant is True
        assert verdict.age_days == 3

    def test_stale_oversized_snapshot(self, make_record, policy, fixed_now):
        verdict = evaluate(make_record(days_old=10, size_gb=15), policy, fixed_now)
        assert verdict.size_test_passed is False
        assert verdict.retention_test_passed is False
        assert verdict.compliant is False

    def test_verdict_identifies_snapshot(self, make_record, policy, fixed_now):
        verdict = evaluate(make_record(vm_name="db-01", snapshot_name="nightly"), policy, fixed_now)
        assert (verdict.vm_name, verdict.snapshot_name) == ("db-01", "nightly")

    @pytest.mark.parametrize("size_gb,passed", [
        (0, True),
        (9.99, True),
        (10, True),
        (10 + 1e-9, False),
        (10.5, False),
    ])
    def test_size_boundary(self, make_record, policy, fixed_now, size_gb, passed):
        verdict = evaluate(make_record(size_gb=size_gb), policy, fixed_now)
        assert verdict.size_test_passed is passed

    @pytest.mark.parametrize("days_old,passed", [
        (0, True),
        (7, True),
        (7.9, True),
        (8, False),
        (365, False),
    ])
    def test_retention_boundary(self, make_record, policy, fixed_now, days_old, passed):
        verdict = evaluate(make_record(days_old=days_old), policy, fixed_now)
        assert verdict.retention_test_passed is passed

    def test_zero_retention_accepts_snapshot_created_now(self, make_record, fixed_now):
        policy = SnapshotPolicy(retention_days=0, max_size_gb=0)
        verdict = evaluate(make_record(days_old=0, size_gb=0), policy, fixed_now)
        assert verdict.compliant is True

    def test_idempotent_for_fixed_now(self, make_record, policy, fixed_now):
        record = make_record(days_old=5, size_gb=12)
        assert evaluate(record, policy, fixed_now) == evaluate(record, policy, fixed_now)

    def test_defaults_to_current_time(self, policy):
        from snapaudit.snapshots.models import SnapshotRecord

        record = SnapshotRecord(
            vm_name="vm",
            snapshot_name="fresh",
            created_at=datetime.now(timezone.utc) - timedelta(hours=1),
            size_gb=1,
            size_mb=1024,
        )
        assert evaluate(record, policy).age_days == 0

    def test_missing_policy_fails_fast(self, make_record, fixed_now):
        with pytest.raises(EvaluationError, match="No policy"):
            evaluate(make_record(), None, fixed_now)

    def test_missing_size_fails_fast(self, make_record, policy, fixed_now):
        from dataclasses import replace

        record = replace(make_record(), size_gb=None)
        with pytest.raises(EvaluationError, match="no size"):
            evaluate(record, policy, fixed_now)
