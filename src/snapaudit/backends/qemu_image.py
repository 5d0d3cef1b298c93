"""qemu-img based inspection of internal qcow2 snapshots."""

import json
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional


class QemuImageInspector:
    """Read image and internal snapshot metadata using qemu-img."""

    def __init__(self, qemu_img: str = "qemu-img", timeout: int = 30):
        self.qemu_img = qemu_img
        self.timeout = timeout

    def get_image_info(self, path: Path) -> Dict[str, Any]:
        """Get image information.

        -U (force share) lets us read images that a running VM holds locked.
        """
        cmd = [self.qemu_img, "info", "-U", "--output=json", str(path)]
        result = subprocess.run(
            cmd, check=True, capture_output=True, text=True, timeout=self.timeout
        )
        return json.loads(result.stdout)

    def internal_snapshot_size(self, path: Path, snapshot_name: str) -> Optional[int]:
        """Bytes of saved VM state for an internal snapshot, None if absent."""
        info = self.get_image_info(path)
        for snap in info.get("snapshots", []):
            if snap.get("name") == snapshot_name:
                return int(snap.get("vm-state-size", 0))
        return None
