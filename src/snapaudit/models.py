#!/usr/bin/env python3
"""
Pydantic models for snapaudit configuration validation.
"""

from pathlib import Path
from typing import Any, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from snapaudit.errors import ConfigError
from snapaudit.snapshots.models import SnapshotPolicy

DEFAULT_PROJECT_CONFIG_FILES = (".snapaudit.yaml", ".snapaudit.yml")
DEFAULT_GLOBAL_CONFIG_FILE = Path.home() / ".config" / "snapaudit" / "config.yaml"


class VMSelection(BaseModel):
    """Glob patterns choosing which VMs are audited."""

    include: List[str] = Field(default_factory=list)
    exclude: List[str] = Field(default_factory=list)

    @field_validator("include", "exclude", mode="before")
    @classmethod
    def _validate_patterns(cls, v: Any) -> List[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            raise TypeError("must be a list")
        for item in v:
            if not isinstance(item, str) or not item.strip():
                raise ValueError("patterns must be non-empty strings")
        return v


class AuditConfig(BaseModel):
    """Snapshot audit configuration."""

    server: str = Field(description="libvirt connection URI")
    retention: int = Field(ge=0, description="Maximum snapshot age in days")
    size: float = Field(ge=0, description="Maximum snapshot size in GB")
    vms: VMSelection = Field(default_factory=VMSelection, description="VM name filters")
    remediate: bool = Field(default=False, description="Delete non-compliant snapshots")

    @field_validator("server")
    @classmethod
    def server_must_be_set(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("server cannot be empty")
        return v.strip()

    def to_policy(self) -> SnapshotPolicy:
        return SnapshotPolicy(retention_days=self.retention, max_size_gb=self.size)

    def save(self, path: Path) -> None:
        """Save configuration to YAML file, creating parent directories."""
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(
                yaml.safe_dump(self.model_dump(), default_flow_style=False, sort_keys=False)
            )
        except OSError as e:
            raise ConfigError(f"Failed to write config file {path}: {e}")

    @classmethod
    def load(cls, path: Path) -> "AuditConfig":
        """Load configuration from YAML file."""
        if path.is_dir():
            path = path / DEFAULT_PROJECT_CONFIG_FILES[0]
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            data = yaml.safe_load(path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}")

        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must be a YAML mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid config file {path}: {e}")


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """Nearest project config at or above ``start``, else the global one."""
    start_path = (start or Path.cwd()).expanduser().resolve()
    if start_path.is_file():
        start_path = start_path.parent

    current = start_path
    while True:
        for name in DEFAULT_PROJECT_CONFIG_FILES:
            candidate = current / name
            if candidate.is_file():
                return candidate

        if current.parent == current:
            break
        current = current.parent

    if DEFAULT_GLOBAL_CONFIG_FILE.is_file():
        return DEFAULT_GLOBAL_CONFIG_FILE

    return None
