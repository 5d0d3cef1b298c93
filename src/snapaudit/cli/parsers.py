#!/usr/bin/env python3
"""
Argument parsers for the snapaudit CLI.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from rich.markup import escape

from snapaudit import __version__
from snapaudit.cli.audit_commands import cmd_audit, cmd_init
from snapaudit.cli.utils import console
from snapaudit.errors import SnapauditError
from snapaudit.logging import LOG_LEVELS, configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="snapaudit", description="Audit VM snapshots against an age and size policy"
    )
    parser.add_argument("--version", action="version", version=f"snapaudit {__version__}")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        help="Log level (default: WARNING)",
    )
    parser.add_argument("--log-json", action="store_true", help="Emit logs as JSON")
    parser.add_argument("--log-file", type=Path, help="Also write JSON logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Init command
    init_parser = subparsers.add_parser("init", help="Write a starter .snapaudit.yaml")
    init_parser.add_argument(
        "path", nargs="?", default=None, help="Path for config file (default: ./.snapaudit.yaml)"
    )
    init_parser.add_argument(
        "--server", default="qemu:///system", help="libvirt URI (default: qemu:///system)"
    )
    init_parser.add_argument(
        "--retention", type=int, default=7, help="Maximum snapshot age in days (default: 7)"
    )
    init_parser.add_argument(
        "--size", type=float, default=10.0, help="Maximum snapshot size in GB (default: 10)"
    )
    init_parser.add_argument("--force", "-f", action="store_true", help="Overwrite existing config")
    init_parser.set_defaults(func=cmd_init)

    # Audit command
    audit_parser = subparsers.add_parser("audit", help="Check snapshots against the policy")
    audit_parser.add_argument("--config", "-c", help="Config file (default: nearest .snapaudit.yaml)")
    audit_parser.add_argument("--server", "-s", help="libvirt URI, overrides config")
    audit_parser.add_argument("--retention", type=int, help="Maximum age in days, overrides config")
    audit_parser.add_argument("--size", type=float, help="Maximum size in GB, overrides config")
    audit_parser.add_argument(
        "--vm", action="append", default=[], help="Only audit this VM (repeatable)"
    )
    audit_parser.add_argument("--json", action="store_true", help="Print a JSON report")
    audit_parser.add_argument(
        "--delete", action="store_true", help="Delete non-compliant snapshots"
    )
    audit_parser.add_argument(
        "--dry-run", action="store_true", help="Show what --delete would remove"
    )
    audit_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")
    audit_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 2 when any snapshot is non-compliant",
    )
    audit_parser.set_defaults(func=cmd_audit)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(level=args.log_level, json_output=args.log_json, log_file=args.log_file)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        code = args.func(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/]")
        sys.exit(1)
    except SnapauditError as e:
        console.print(f"[red]Error: {escape(str(e))}[/]")
        sys.exit(1)
    sys.exit(code or 0)
