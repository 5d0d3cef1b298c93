"""Interface for virtualization platforms that hold VM snapshots."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional


@dataclass
class SnapshotHandle:
    """Raw snapshot metadata as reported by a platform."""

    name: str
    created_at: Optional[datetime]
    size_bytes: int = 0
    description: Optional[str] = None


class SnapshotPlatform(ABC):
    """Abstract interface for snapshot enumeration and deletion."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Platform name (e.g., 'libvirt')."""
        pass

    @abstractmethod
    def connect(self) -> None:
        """Establish the session. Raises PlatformConnectionError."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close the session."""
        pass

    @abstractmethod
    def list_vms(self) -> List[str]:
        """Names of all VMs known to the platform."""
        pass

    @abstractmethod
    def list_snapshots(self, vm_name: str) -> List[SnapshotHandle]:
        """Snapshots of one VM. An empty list when it has none."""
        pass

    @abstractmethod
    def delete_snapshot(self, vm_name: str, snapshot_name: str) -> None:
        """
        Look the snapshot up by name and request its deletion.

        Raises SnapshotNotFoundError if it no longer exists and
        RemediationError for any other refusal.
        """
        pass

    def __enter__(self) -> "SnapshotPlatform":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()
