"""
Deletion of snapshots that failed the compliance check.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence, Tuple

from snapaudit.errors import RemediationError, SnapshotNotFoundError
from snapaudit.interfaces.platform import SnapshotPlatform
from snapaudit.logging import get_logger, log_operation
from snapaudit.snapshots.models import ComplianceVerdict

log = get_logger(__name__)


@dataclass(frozen=True)
class RemediationFailure:
    vm_name: str
    snapshot_name: str
    error: str
    not_found: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vm_name": self.vm_name,
            "snapshot_name": self.snapshot_name,
            "error": self.error,
            "not_found": self.not_found,
        }


@dataclass
class RemediationResult:
    """Outcome of one remediation pass.

    ``planned`` counts the non-compliant snapshots selected for deletion.
    ``attempted`` counts the deletion requests actually sent, so it stays 0
    on a dry run.
    """

    planned: int = 0
    attempted: int = 0
    dry_run: bool = False
    deleted: List[Tuple[str, str]] = field(default_factory=list)
    failures: List[RemediationFailure] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "planned": self.planned,
            "attempted": self.attempted,
            "dry_run": self.dry_run,
            "deleted": [{"vm_name": vm, "snapshot_name": snap} for vm, snap in self.deleted],
            "failures": [f.to_dict() for f in self.failures],
        }


class Remediator:
    """Issue deletions for non-compliant snapshots.

    Deletion requests are sent once each; completion on the platform side is
    not awaited and failed requests are not retried.
    """

    def __init__(self, platform: SnapshotPlatform, dry_run: bool = False):
        self.platform = platform
        self.dry_run = dry_run

    def remediate(self, verdicts: Sequence[ComplianceVerdict]) -> RemediationResult:
        """Delete every snapshot whose verdict failed either test.

        A snapshot that cannot be deleted is recorded in ``failures`` and the
        pass continues with the next one.
        """
        targets = [v for v in verdicts if not v.compliant]
        result = RemediationResult(planned=len(targets), dry_run=self.dry_run)

        with log_operation(log, "remediate", targets=len(targets), dry_run=self.dry_run) as op_log:
            for verdict in targets:
                if self.dry_run:
                    op_log.info(
                        "snapshot.would_delete",
                        vm_name=verdict.vm_name,
                        snapshot_name=verdict.snapshot_name,
                    )
                    continue

                result.attempted += 1
                try:
                    self.platform.delete_snapshot(verdict.vm_name, verdict.snapshot_name)
                except RemediationError as e:
                    op_log.warning(
                        "snapshot.delete_failed",
                        vm_name=verdict.vm_name,
                        snapshot_name=verdict.snapshot_name,
                        error=str(e),
                    )
                    result.failures.append(
                        RemediationFailure(
                            vm_name=verdict.vm_name,
                            snapshot_name=verdict.snapshot_name,
                            error=str(e),
                            not_found=isinstance(e, SnapshotNotFoundError),
                        )
                    )
                    continue

                op_log.info(
                    "snapshot.delete_requested",
                    vm_name=verdict.vm_name,
                    snapshot_name=verdict.snapshot_name,
                )
                result.deleted.append((verdict.vm_name, verdict.snapshot_name))

        return result
