"""
Pytest fixtures and configuration for snapaudit tests.
"""
import io
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Dict, List
from unittest.mock import MagicMock, patch

import pytest
import yaml
from rich.console import Console

from snapaudit.errors import EnumerationError, PlatformConnectionError, SnapshotNotFoundError
from snapaudit.interfaces.platform import SnapshotHandle, SnapshotPlatform
from snapaudit.logging import configure_logging
from snapaudit.snapshots.models import BYTES_PER_GB, SnapshotPolicy, SnapshotRecord

FIXED_NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(scope="session", autouse=True)
def quiet_logging():
    configure_logging(level="WARNING")


class FakePlatform(SnapshotPlatform):
    """In-memory snapshot platform."""

    name = "fake"

    def __init__(self, snapshots: Dict[str, List[SnapshotHandle]] = None):
        self.snapshots = snapshots or {}
        self.failing_vms = set()
        self.refuse_connect = False
        self.connected = False
        self.delete_calls = []

    def connect(self) -> None:
        if self.refuse_connect:
            raise PlatformConnectionError("connection refused")
        self.connected = True

    def disconnect(self) -> None:
        self.connected = False

    def list_vms(self) -> List[str]:
        return list(self.snapshots)

    def list_snapshots(self, vm_name: str) -> List[SnapshotHandle]:
        if vm_name in self.failing_vms:
            raise EnumerationError(f"cannot query {vm_name}", vm_name=vm_name)
        return list(self.snapshots.get(vm_name, []))

    def delete_snapshot(self, vm_name: str, snapshot_name: str) -> None:
        self.delete_calls.append((vm_name, snapshot_name))
        handles = self.snapshots.get(vm_name, [])
        for handle in handles:
            if handle.name == snapshot_name:
                handles.remove(handle)
                return
        raise SnapshotNotFoundError(
            f"Snapshot '{snapshot_name}' not found for VM '{vm_name}'",
            vm_name=vm_name,
            snapshot_name=snapshot_name,
        )


def make_handle(name: str, days_old: float, size_gb: float, now: datetime = FIXED_NOW) -> SnapshotHandle:
    return SnapshotHandle(
        name=name,
        created_at=now - timedelta(days=days_old),
        size_bytes=int(size_gb * BYTES_PER_GB),
    )


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def policy():
    return SnapshotPolicy(retention_days=7, max_size_gb=10)


@pytest.fixture
def make_record():
    def _make(vm_name="web-01", snapshot_name="snap", days_old=0.0, size_gb=0.0, now=FIXED_NOW):
        return SnapshotRecord(
            vm_name=vm_name,
            snapshot_name=snapshot_name,
            created_at=now - timedelta(days=days_old),
            size_gb=size_gb,
            size_mb=size_gb * 1024,
        )

    return _make


@pytest.fixture
def fake_platform():
    """Two VMs: web-01 with one good and one stale, oversized snapshot; db-01 with none."""
    return FakePlatform(
        {
            "web-01": [
                make_handle("daily", days_old=3, size_gb=5),
                make_handle("pre-upgrade", days_old=10, size_gb=15),
            ],
            "db-01": [],
        }
    )


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / ".snapaudit.yaml"
    path.write_text(
        yaml.safe_dump({"server": "qemu:///system", "retention": 7, "size": 10})
    )
    return path


@pytest.fixture
def cli_console():
    """Wide, non-terminal console shared by the CLI modules."""
    console = Console(file=io.StringIO(), width=200, color_system=None)
    with patch("snapaudit.cli.utils.console", console), patch(
        "snapaudit.cli.audit_commands.console", console
    ):
        yield console


class FakeLibvirtError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self._code = code

    def get_error_code(self):
        return self._code


@pytest.fixture
def fake_libvirt():
    """Stand-in for the libvirt module with a mocked connection."""
    conn = MagicMock()
    module = SimpleNamespace(
        libvirtError=FakeLibvirtError,
        VIR_ERR_NO_DOMAIN=42,
        VIR_ERR_NO_DOMAIN_SNAPSHOT=72,
        open=MagicMock(return_value=conn),
        conn=conn,
    )
    with patch("snapaudit.backends.libvirt_backend.libvirt", module):
        yield module
