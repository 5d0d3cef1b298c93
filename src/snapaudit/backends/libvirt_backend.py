"""libvirt snapshot platform implementation."""

import subprocess
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

try:
    import libvirt
except ImportError:
    libvirt = None

from ..errors import (
    EnumerationError,
    PlatformConnectionError,
    RemediationError,
    SnapshotNotFoundError,
)
from ..interfaces.platform import SnapshotHandle, SnapshotPlatform
from ..logging import get_logger
from .qemu_image import QemuImageInspector

log = get_logger(__name__)


class LibvirtPlatform(SnapshotPlatform):
    """Snapshots of libvirt domains."""

    name = "libvirt"

    def __init__(
        self,
        uri: str = "qemu:///system",
        inspector: Optional[QemuImageInspector] = None,
    ):
        self.uri = uri
        self.inspector = inspector or QemuImageInspector()
        self._conn = None

    def connect(self) -> None:
        """Establish connection to libvirt."""
        if libvirt is None:
            raise PlatformConnectionError("libvirt-python not installed")

        if self._conn is not None:
            try:
                if self._conn.isAlive():
                    return
            except libvirt.libvirtError:
                pass

        try:
            self._conn = libvirt.open(self.uri)
        except libvirt.libvirtError as e:
            raise PlatformConnectionError(f"Failed to connect to libvirt at {self.uri}: {e}")
        if self._conn is None:
            raise PlatformConnectionError(f"Failed to connect to libvirt at {self.uri}")

    def disconnect(self) -> None:
        """Close connection."""
        if self._conn:
            try:
                self._conn.close()
            except libvirt.libvirtError as e:
                log.warning("libvirt.close_failed", uri=self.uri, error=str(e))
            self._conn = None

    @property
    def conn(self):
        """Get active libvirt connection."""
        if self._conn is None:
            self.connect()
        return self._conn

    def list_vms(self) -> List[str]:
        """List names of all defined domains, running or not."""
        try:
            return [domain.name() for domain in self.conn.listAllDomains()]
        except libvirt.libvirtError as e:
            raise EnumerationError(f"Failed to list domains on {self.uri}: {e}")

    def list_snapshots(self, vm_name: str) -> List[SnapshotHandle]:
        """List snapshots of a domain with creation time and measured size."""
        try:
            domain = self.conn.lookupByName(vm_name)
            snapshots = domain.listAllSnapshots()
            if not snapshots:
                return []

            disk_sources = _domain_disk_sources(domain.XMLDesc())
            return [
                self._to_handle(vm_name, snap.getXMLDesc(), disk_sources) for snap in snapshots
            ]
        except libvirt.libvirtError as e:
            raise EnumerationError(f"Failed to list snapshots of '{vm_name}': {e}", vm_name=vm_name)
        except (ET.ParseError, ValueError) as e:
            raise EnumerationError(f"Unreadable snapshot XML for '{vm_name}': {e}", vm_name=vm_name)

    def delete_snapshot(self, vm_name: str, snapshot_name: str) -> None:
        """Re-resolve a snapshot by name and delete it."""
        try:
            domain = self.conn.lookupByName(vm_name)
            snap = domain.snapshotLookupByName(snapshot_name)
        except libvirt.libvirtError as e:
            if e.get_error_code() in (libvirt.VIR_ERR_NO_DOMAIN, libvirt.VIR_ERR_NO_DOMAIN_SNAPSHOT):
                raise SnapshotNotFoundError(
                    f"Snapshot '{snapshot_name}' not found for VM '{vm_name}'",
                    vm_name=vm_name,
                    snapshot_name=snapshot_name,
                )
            raise RemediationError(
                f"Failed to look up snapshot '{snapshot_name}' of '{vm_name}': {e}",
                vm_name=vm_name,
                snapshot_name=snapshot_name,
            )

        try:
            snap.delete(0)
        except libvirt.libvirtError as e:
            raise RemediationError(
                f"Failed to delete snapshot '{snapshot_name}' of '{vm_name}': {e}",
                vm_name=vm_name,
                snapshot_name=snapshot_name,
            )

    def _to_handle(
        self, vm_name: str, snapshot_xml: str, disk_sources: Dict[str, str]
    ) -> SnapshotHandle:
        root = ET.fromstring(snapshot_xml)
        name = root.findtext("name", "")
        creation_time = root.findtext("creationTime")

        return SnapshotHandle(
            name=name,
            created_at=(
                datetime.fromtimestamp(int(creation_time), tz=timezone.utc)
                if creation_time
                else None
            ),
            size_bytes=self._snapshot_size(vm_name, name, root, disk_sources),
            description=root.findtext("description") or None,
        )

    def _snapshot_size(
        self, vm_name: str, snapshot_name: str, root: ET.Element, disk_sources: Dict[str, str]
    ) -> int:
        """Sum the storage a snapshot holds.

        External snapshots own their overlay and memory files. Internal ones
        live inside the base qcow2 image, where only the saved VM state size
        is reported.
        """
        total = 0
        internal_images = set()

        memory = root.find("memory")
        if memory is not None and memory.get("snapshot") == "external" and memory.get("file"):
            total += self._allocation(memory.get("file"))

        for disk in root.findall("disks/disk"):
            mode = disk.get("snapshot")
            if mode == "external":
                source = disk.find("source")
                if source is not None and source.get("file"):
                    total += self._allocation(source.get("file"))
            elif mode == "internal":
                image = disk_sources.get(disk.get("name", ""))
                if image:
                    internal_images.add(image)

        # VM state of an internal snapshot is stored in one image only
        for image in sorted(internal_images):
            size = self._internal_size(vm_name, snapshot_name, image)
            if size:
                total += size
                break

        return total

    def _allocation(self, path: str) -> int:
        """Bytes allocated for a file, via the storage pool or the local filesystem."""
        try:
            return int(self.conn.storageVolLookupByPath(path).info()[2])
        except libvirt.libvirtError:
            pass

        local = Path(path)
        if local.exists():
            return local.stat().st_size

        log.warning("snapshot.size_unknown", path=path, reason="not in a storage pool")
        return 0

    def _internal_size(self, vm_name: str, snapshot_name: str, image: str) -> int:
        if not Path(image).exists():
            log.warning("snapshot.size_unknown", vm_name=vm_name, path=image, reason="image not local")
            return 0
        try:
            return self.inspector.internal_snapshot_size(Path(image), snapshot_name) or 0
        except (subprocess.SubprocessError, OSError, ValueError) as e:
            log.warning("snapshot.size_unknown", vm_name=vm_name, path=image, error=str(e))
            return 0


def _domain_disk_sources(domain_xml: str) -> Dict[str, str]:
    """Map disk target device (vda, sdb, ...) to its source file."""
    sources = {}
    root = ET.fromstring(domain_xml)
    for disk in root.findall("devices/disk"):
        target = disk.find("target")
        source = disk.find("source")
        if target is None or source is None or not source.get("file"):
            continue
        sources[target.get("dev")] = source.get("file")
    return sources
