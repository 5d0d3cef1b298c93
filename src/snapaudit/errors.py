"""Exception hierarchy for snapaudit."""

from typing import Optional


class SnapauditError(Exception):
    """Base class for all snapaudit errors."""


class ConfigError(SnapauditError, ValueError):
    """Configuration file missing, unreadable or invalid."""


class PlatformConnectionError(SnapauditError, ConnectionError):
    """Virtualization platform unreachable or credentials rejected."""


class EnumerationError(SnapauditError):
    """A VM or its snapshots could not be queried."""

    def __init__(self, message: str, vm_name: Optional[str] = None):
        super().__init__(message)
        self.vm_name = vm_name


class EvaluationError(SnapauditError, ValueError):
    """A snapshot could not be evaluated because required data is missing."""


class RemediationError(SnapauditError, RuntimeError):
    """A non-compliant snapshot could not be deleted."""

    def __init__(self, message: str, vm_name: str = "", snapshot_name: str = ""):
        super().__init__(message)
        self.vm_name = vm_name
        self.snapshot_name = snapshot_name


class SnapshotNotFoundError(RemediationError, LookupError):
    """The snapshot targeted for deletion no longer exists."""
