"""Snapshot records and their extraction from a platform."""

from .models import ComplianceVerdict, SnapshotPolicy, SnapshotRecord
from .extraction import (
    EnumerationFailure,
    SnapshotInventory,
    collect_inventory,
    extract_records,
    to_record,
)

__all__ = [
    "ComplianceVerdict",
    "SnapshotPolicy",
    "SnapshotRecord",
    "EnumerationFailure",
    "SnapshotInventory",
    "collect_inventory",
    "extract_records",
    "to_record",
]
