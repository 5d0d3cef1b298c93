#!/usr/bin/env python3
"""Turn platform snapshot handles into normalized SnapshotRecords."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from ..errors import EnumerationError, EvaluationError
from ..interfaces.platform import SnapshotHandle, SnapshotPlatform
from ..logging import get_logger, log_operation
from .filters import is_vm_selected
from .models import BYTES_PER_GB, BYTES_PER_MB, SnapshotRecord

log = get_logger(__name__)


@dataclass(frozen=True)
class EnumerationFailure:
    """A VM, or one of its snapshots, that could not be read."""

    vm_name: str
    error: str
    snapshot_name: Optional[str] = None

    def to_dict(self):
        return {"vm_name": self.vm_name, "snapshot_name": self.snapshot_name, "error": self.error}


@dataclass
class SnapshotInventory:
    """Records gathered from the platform plus the VMs that failed to enumerate."""

    records: List[SnapshotRecord] = field(default_factory=list)
    failures: List[EnumerationFailure] = field(default_factory=list)
    vms_scanned: int = 0


def to_record(vm_name: str, handle: SnapshotHandle) -> SnapshotRecord:
    """Normalize one platform snapshot handle owned by ``vm_name``."""
    if not handle.name:
        raise EvaluationError(f"Snapshot of VM '{vm_name}' has no name")
    if handle.created_at is None:
        raise EvaluationError(f"Snapshot '{handle.name}' of VM '{vm_name}' has no creation time")
    if handle.size_bytes is None or handle.size_bytes < 0:
        raise EvaluationError(f"Snapshot '{handle.name}' of VM '{vm_name}' has no valid size")

    return SnapshotRecord(
        vm_name=vm_name,
        snapshot_name=handle.name,
        created_at=handle.created_at,
        size_gb=handle.size_bytes / BYTES_PER_GB,
        size_mb=handle.size_bytes / BYTES_PER_MB,
        description=handle.description,
    )


def extract_records(platform: SnapshotPlatform, vm_name: str) -> List[SnapshotRecord]:
    """All snapshot records of one VM; a VM without snapshots yields none.

    Raises EnumerationError when the platform cannot be queried for this VM.
    """
    try:
        handles = platform.list_snapshots(vm_name)
    except EnumerationError:
        raise
    except Exception as e:
        raise EnumerationError(f"Failed to list snapshots of '{vm_name}': {e}", vm_name=vm_name)

    return [to_record(vm_name, handle) for handle in handles]


def collect_inventory(
    platform: SnapshotPlatform,
    vm_names: Optional[Sequence[str]] = None,
    include: Iterable[str] = (),
    exclude: Iterable[str] = (),
) -> SnapshotInventory:
    """
    Gather snapshot records across VMs.

    Args:
        platform: Connected snapshot platform
        vm_names: VMs to scan; every VM on the platform when None
        include: Glob patterns a VM name must match (empty selects all)
        exclude: Glob patterns that drop a VM

    A VM that cannot be queried is recorded as a failure and the scan moves
    on. Failing to list the VMs at all is fatal.
    """
    inventory = SnapshotInventory()

    with log_operation(log, "inventory", platform=platform.name) as op_log:
        if vm_names is None:
            try:
                vm_names = platform.list_vms()
            except EnumerationError:
                raise
            except Exception as e:
                raise EnumerationError(f"Failed to list VMs: {e}")

        # a VM named twice is scanned once
        vm_names = list(dict.fromkeys(vm_names))

        for vm_name in vm_names:
            if not is_vm_selected(vm_name, include, exclude):
                op_log.debug("vm.skipped", vm_name=vm_name)
                continue

            inventory.vms_scanned += 1
            try:
                handles = platform.list_snapshots(vm_name)
            except Exception as e:
                op_log.warning("vm.enumeration_failed", vm_name=vm_name, error=str(e))
                inventory.failures.append(EnumerationFailure(vm_name=vm_name, error=str(e)))
                continue

            for handle in handles:
                try:
                    inventory.records.append(to_record(vm_name, handle))
                except EvaluationError as e:
                    op_log.warning("snapshot.unreadable", vm_name=vm_name, error=str(e))
                    inventory.failures.append(
                        EnumerationFailure(
                            vm_name=vm_name, error=str(e), snapshot_name=handle.name or None
                        )
                    )

        op_log.info(
            "inventory.summary",
            vms=inventory.vms_scanned,
            snapshots=len(inventory.records),
            failures=len(inventory.failures),
        )

    return inventory
