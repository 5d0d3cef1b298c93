#!/usr/bin/env python3
"""Data models for snapshot compliance auditing."""

from dataclasses import dataclass
from datetime import datetime
from numbers import Real
from typing import Any, Dict, Optional

BYTES_PER_MB = 1024**2
BYTES_PER_GB = 1024**3


@dataclass(frozen=True)
class SnapshotRecord:
    """Normalized snapshot metadata for one snapshot of one VM."""

    vm_name: str
    snapshot_name: str
    created_at: datetime
    size_gb: float
    size_mb: float

    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "vm_name": self.vm_name,
            "snapshot_name": self.snapshot_name,
            "created_at": self.created_at.isoformat(),
            "size_gb": self.size_gb,
            "size_mb": self.size_mb,
            "description": self.description,
        }


@dataclass(frozen=True)
class SnapshotPolicy:
    """Maximum age and size a snapshot may reach before it is non-compliant."""

    retention_days: int
    max_size_gb: float

    def __post_init__(self):
        # bool is an int subclass; True days is almost certainly a config mistake
        if isinstance(self.retention_days, bool) or not isinstance(self.retention_days, int):
            raise ValueError(f"retention_days must be an integer, got {self.retention_days!r}")
        if self.retention_days < 0:
            raise ValueError("retention_days must be >= 0")
        if isinstance(self.max_size_gb, bool) or not isinstance(self.max_size_gb, Real):
            raise ValueError(f"max_size_gb must be a number, got {self.max_size_gb!r}")
        if self.max_size_gb < 0:
            raise ValueError("max_size_gb must be >= 0")

    def to_dict(self) -> Dict[str, Any]:
        return {"retention_days": self.retention_days, "max_size_gb": self.max_size_gb}


@dataclass(frozen=True)
class ComplianceVerdict:
    """Outcome of checking one snapshot against a policy."""

    vm_name: str
    snapshot_name: str
    size_test_passed: bool
    retention_test_passed: bool

    # Measured values the tests ran against
    age_days: Optional[int] = None
    size_gb: Optional[float] = None

    @property
    def compliant(self) -> bool:
        return self.size_test_passed and self.retention_test_passed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "vm_name": self.vm_name,
            "snapshot_name": self.snapshot_name,
            "size_test_passed": self.size_test_passed,
            "retention_test_passed": self.retention_test_passed,
            "compliant": self.compliant,
            "age_days": self.age_days,
            "size_gb": self.size_gb,
        }
