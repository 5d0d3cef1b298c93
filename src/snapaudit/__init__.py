"""
snapaudit - Audit VM snapshots against a retention and size policy.

Enumerate the snapshots of every VM on a libvirt host, check each one against
a maximum age and a maximum size, report the verdicts and optionally delete
the snapshots that fail.
"""

__version__ = "0.1.0"
__author__ = "snapaudit Team"

from snapaudit.policies import ComplianceSummary, evaluate, report
from snapaudit.snapshots import ComplianceVerdict, SnapshotPolicy, SnapshotRecord

__all__ = [
    "ComplianceSummary",
    "ComplianceVerdict",
    "SnapshotPolicy",
    "SnapshotRecord",
    "evaluate",
    "report",
    "__version__",
]
