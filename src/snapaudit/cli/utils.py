#!/usr/bin/env python3
"""
Shared utilities for the snapaudit CLI.
"""

from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError
from questionary import Style
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from snapaudit.backends.libvirt_backend import LibvirtPlatform
from snapaudit.errors import ConfigError
from snapaudit.interfaces.platform import SnapshotPlatform
from snapaudit.models import AuditConfig, find_config_file
from snapaudit.policies import ComplianceSummary
from snapaudit.remediation import RemediationResult
from snapaudit.snapshots import EnumerationFailure, SnapshotPolicy, SnapshotRecord
from snapaudit.snapshots.models import ComplianceVerdict

custom_style = Style(
    [
        ("qmark", "fg:cyan bold"),
        ("question", "bold"),
        ("answer", "fg:green"),
        ("pointer", "fg:cyan bold"),
        ("highlighted", "fg:cyan bold"),
        ("instruction", "fg:gray italic"),
    ]
)

console = Console()
SNAPAUDIT_CONFIG_FILE = ".snapaudit.yaml"


def create_platform(server: str) -> SnapshotPlatform:
    """Platform backend for a configured server URI."""
    return LibvirtPlatform(uri=server)


def resolve_audit_config(args) -> AuditConfig:
    """Build the effective config from the config file and CLI overrides.

    Without any config file, --server, --retention and --size must all be given.
    """
    overrides = {
        key: value
        for key, value in (
            ("server", getattr(args, "server", None)),
            ("retention", getattr(args, "retention", None)),
            ("size", getattr(args, "size", None)),
        )
        if value is not None
    }

    config_path = Path(args.config).expanduser() if getattr(args, "config", None) else None
    if config_path is None:
        config_path = find_config_file()

    if config_path is not None:
        base = AuditConfig.load(config_path).model_dump()
    elif {"server", "retention", "size"} <= overrides.keys():
        base = {}
    else:
        raise ConfigError(
            f"No {SNAPAUDIT_CONFIG_FILE} found; pass --config or all of --server, --retention and --size"
        )

    base.update(overrides)
    try:
        return AuditConfig.model_validate(base)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}")


def _pass_fail(passed: bool) -> str:
    return "[green]PASS[/]" if passed else "[red]FAIL[/]"


def render_verdicts(
    records: Sequence[SnapshotRecord],
    verdicts: Sequence[ComplianceVerdict],
    policy: SnapshotPolicy,
    title: Optional[str] = None,
) -> Table:
    table = Table(
        title=title
        or f"Snapshot compliance (max {policy.retention_days} days, {policy.max_size_gb:g} GB)"
    )
    table.add_column("VM", style="cyan")
    table.add_column("Snapshot", style="green")
    table.add_column("Created", style="blue")
    table.add_column("Age (days)", justify="right")
    table.add_column("Size (GB)", justify="right")
    table.add_column("Size test")
    table.add_column("Retention test")

    for record, verdict in zip(records, verdicts):
        table.add_row(
            escape(verdict.vm_name),
            escape(verdict.snapshot_name),
            record.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            str(verdict.age_days),
            f"{record.size_gb:.2f}",
            _pass_fail(verdict.size_test_passed),
            _pass_fail(verdict.retention_test_passed),
        )
    return table


def print_summary(summary: ComplianceSummary) -> None:
    style = "green" if summary.non_compliant == 0 else "yellow"
    console.print(
        f"[{style}]{summary.compliant}/{summary.total} snapshots compliant[/] "
        f"[dim](size failures: {summary.size_failures}, "
        f"retention failures: {summary.retention_failures})[/]"
    )


def print_enumeration_failures(failures: Sequence[EnumerationFailure]) -> None:
    if not failures:
        return
    console.print(f"\n[red]❌ {len(failures)} VM/snapshot(s) could not be read:[/]")
    for failure in failures:
        target = failure.vm_name
        if failure.snapshot_name:
            target = f"{target}/{failure.snapshot_name}"
        console.print(f"  • {escape(target)}: {escape(failure.error)}")


def print_remediation(result: RemediationResult) -> None:
    if result.dry_run:
        console.print(f"[yellow]Dry run: {result.planned} snapshot(s) would be deleted[/]")
        return

    console.print(
        f"[green]✅ Deletion requested for {len(result.deleted)} of {result.attempted} snapshot(s)[/]"
    )
    for failure in result.failures:
        label = "not found" if failure.not_found else "failed"
        target = escape(f"{failure.vm_name}/{failure.snapshot_name}")
        console.print(f"  [red]• {target} {label}:[/] {escape(failure.error)}")
