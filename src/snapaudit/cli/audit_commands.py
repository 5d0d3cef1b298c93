#!/usr/bin/env python3
"""
Audit and init commands for the snapaudit CLI.
"""

from pathlib import Path

import questionary
from pydantic import ValidationError
from rich.markup import escape

from snapaudit.errors import ConfigError, EnumerationError, PlatformConnectionError
from snapaudit.logging import audit_context, get_logger, log_operation
from snapaudit.models import AuditConfig, VMSelection
from snapaudit.policies import ComplianceSummary, report
from snapaudit.remediation import Remediator
from snapaudit.snapshots import collect_inventory
from snapaudit.cli.utils import (
    SNAPAUDIT_CONFIG_FILE,
    console,
    create_platform,
    custom_style,
    print_enumeration_failures,
    print_remediation,
    print_summary,
    render_verdicts,
    resolve_audit_config,
)

log = get_logger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_NON_COMPLIANT = 2


def cmd_init(args) -> int:
    """Write a starter configuration file."""
    target = Path(args.path).expanduser() if args.path else Path.cwd() / SNAPAUDIT_CONFIG_FILE
    if target.is_dir():
        target = target / SNAPAUDIT_CONFIG_FILE

    if target.exists() and not args.force:
        console.print(f"[red]❌ {escape(str(target))} already exists (use --force to overwrite)[/]")
        return EXIT_FATAL

    try:
        config = AuditConfig(
            server=args.server,
            retention=args.retention,
            size=args.size,
            vms=VMSelection(),
        )
        config.save(target)
    except ValidationError as e:
        console.print(f"[red]❌ Invalid configuration: {escape(str(e))}[/]")
        return EXIT_FATAL
    except ConfigError as e:
        console.print(f"[red]❌ {escape(str(e))}[/]")
        return EXIT_FATAL
    console.print(f"[green]✅ Config written to {escape(str(target))}[/]")
    return EXIT_OK


def cmd_audit(args) -> int:
    """Audit snapshots against the policy and optionally delete failures."""
    try:
        config = resolve_audit_config(args)
    except ConfigError as e:
        return _fatal(args, str(e))

    with audit_context(config.server):
        return _run_audit(args, config)


def _run_audit(args, config: AuditConfig) -> int:
    policy = config.to_policy()
    platform = create_platform(config.server)

    try:
        with log_operation(log, "connect"):
            platform.connect()
    except PlatformConnectionError as e:
        return _fatal(args, f"Cannot connect to {config.server}: {e}")

    try:
        try:
            inventory = collect_inventory(
                platform,
                vm_names=args.vm or None,
                include=config.vms.include,
                exclude=config.vms.exclude,
            )
        except EnumerationError as e:
            return _fatal(args, str(e))

        verdicts = report(inventory.records, policy)
        summary = ComplianceSummary.from_verdicts(verdicts)

        if not args.json:
            if verdicts:
                console.print(render_verdicts(inventory.records, verdicts, policy))
            else:
                console.print(f"[dim]No snapshots found on {escape(config.server)}[/]")
            print_summary(summary)
            print_enumeration_failures(inventory.failures)

        remediation = None
        wants_deletion = args.delete or args.dry_run or config.remediate
        if wants_deletion and summary.non_compliant:
            # stdout carries the JSON document, so never prompt in that mode
            confirmed = args.dry_run or args.yes or (
                not args.json and _confirm_deletion(summary.non_compliant)
            )
            if confirmed:
                remediation = Remediator(platform, dry_run=args.dry_run).remediate(verdicts)
            elif not args.json:
                console.print("[dim]Deletion skipped[/]")
            else:
                log.warning("remediation.skipped", reason="--json requires --yes to delete")
    finally:
        platform.disconnect()

    if args.json:
        console.print_json(
            data={
                "server": config.server,
                "policy": policy.to_dict(),
                "verdicts": [v.to_dict() for v in verdicts],
                "summary": summary.to_dict(),
                "enumeration_failures": [f.to_dict() for f in inventory.failures],
                "remediation": remediation.to_dict() if remediation else None,
            }
        )
    elif remediation:
        print_remediation(remediation)

    if args.strict and summary.non_compliant:
        return EXIT_NON_COMPLIANT
    return EXIT_OK


def _fatal(args, message: str) -> int:
    if args.json:
        console.print_json(data={"error": message})
    else:
        console.print(f"[red]❌ {escape(message)}[/]")
    return EXIT_FATAL


def _confirm_deletion(count: int) -> bool:
    answer = questionary.confirm(
        f"Delete {count} non-compliant snapshot(s)?",
        default=False,
        style=custom_style,
    ).ask()
    return bool(answer)
