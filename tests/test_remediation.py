#!/usr/bin/env python3
"""Tests for deletion of non-compliant snapshots."""

from unittest.mock import MagicMock

from snapaudit.errors import RemediationError
from snapaudit.remediation import Remediator
from snapaudit.snapshots.models import ComplianceVerdict


def verdict(vm, snap, size_ok=True, age_ok=True):
    return ComplianceVerdict(vm, snap, size_test_passed=size_ok, retention_test_passed=age_ok)


class TestRemediator:
    def test_deletes_only_failing_snapshot(self):
        platform = MagicMock()
        verdicts = [verdict("web-01", "old", age_ok=False), verdict("web-01", "fresh")]

        result = Remediator(platform).remediate(verdicts)

        assert result.attempted == 1
        platform.delete_snapshot.assert_called_once_with("web-01", "old")
        assert result.deleted == [("web-01", "old")]

    def test_size_or_age_failure_triggers_deletion(self):
        platform = MagicMock()
        verdicts = [
            verdict("a", "big", size_ok=False),
            verdict("b", "old", age_ok=False),
            verdict("c", "both", size_ok=False, age_ok=False),
        ]

        result = Remediator(platform).remediate(verdicts)

        assert result.attempted == 3
        assert result.planned == 3
        assert platform.delete_snapshot.call_count == 3

    def test_missing_snapshot_does_not_abort(self, fake_platform):
        verdicts = [
            verdict("web-01", "vanished", age_ok=False),
            verdict("web-01", "pre-upgrade", size_ok=False, age_ok=False),
        ]

        result = Remediator(fake_platform).remediate(verdicts)

        assert result.attempted == 2
        assert result.deleted == [("web-01", "pre-upgrade")]
        assert len(result.failures) == 1
        assert result.failures[0].snapshot_name == "vanished"
        assert result.failures[0].not_found is True
        assert [h.name for h in fake_platform.snapshots["web-01"]] == ["daily"]

    def test_refused_deletion_is_reported(self):
        platform = MagicMock()
        platform.delete_snapshot.side_effect = [
            RemediationError("permission denied", vm_name="a", snapshot_name="s1"),
            None,
        ]
        verdicts = [verdict("a", "s1", age_ok=False), verdict("a", "s2", age_ok=False)]

        result = Remediator(platform).remediate(verdicts)

        assert result.deleted == [("a", "s2")]
        assert result.failures[0].not_found is False
        assert "permission denied" in result.failures[0].error

    def test_dry_run_does_not_touch_platform(self):
        platform = MagicMock()

        result = Remediator(platform, dry_run=True).remediate([verdict("a", "s", age_ok=False)])

        assert result.planned == 1
        assert result.attempted == 0
        assert result.deleted == []
        platform.delete_snapshot.assert_not_called()
        assert result.to_dict()["dry_run"] is True

    def test_all_compliant(self):
        platform = MagicMock()
        result = Remediator(platform).remediate([verdict("a", "s")])
        assert result.attempted == 0
        platform.delete_snapshot.assert_not_called()
