"""Shared plumbing for the built-in commands."""

from __future__ import annotations

import json
import sys
from argparse import ArgumentParser
from pathlib import Path
from typing import Any, Collection

from esxpkg_core.api import EsxpkgCommand
from esxpkg_core.config import resolve_workspace
from esxpkg_core.errors import EsxPkgError
from esxpkg_core.types import InstallOptions

OPTION_FLAGS = (
    ("--dry-run", "dry_run", "dryrun", "Report what would change without mutating the host"),
    ("--force", "force", "force", "Skip dependency, conflict and acceptance checks (risky)"),
    ("--maintenance-mode", "maintenance_mode", "maintenancemode", "Assume the host is already in maintenance mode"),
    ("--no-live-install", "no_live_install", "noliveinstall", "Write to the alternate boot bank only"),
    ("--no-sig-check", "no_sig_check", "nosigcheck", "Skip signature and acceptance verification (risky)"),
    ("--allow-downgrades", "allow_downgrades", "allowdowngrades", "Permit VIB version downgrades"),
    ("--ok-to-remove", "ok_to_remove", "oktoremove", "Permit removal of installed VIBs missing from the target"),
    ("--no-hardware-warning", "no_hardware_warning", "nohardwarewarning", "Proceed past hardware precheck warnings"),
)


class _WorkspaceAwareCommand(EsxpkgCommand):
    def _resolve(self, workspace_dir: str | None) -> Path:
        return resolve_workspace(workspace_dir, self.start_dir)

    def _prefix(self) -> str:
        return f"[esxpkg:{self.name}]"

    def _fail(self, exc: EsxPkgError, argv: Any) -> int:
        if str(getattr(argv, "format", "text")) == "json":
            payload = {
                "ok": False,
                "error": type(exc).__name__,
                "message": str(exc),
                "stage": exc.stage,
                "remediation": exc.remediation,
            }
            print(json.dumps(payload, indent=2), file=sys.stderr)
            return 1
        print(f"{self._prefix()} error: {exc}", file=sys.stderr)
        if exc.remediation:
            print(f"{self._prefix()} hint: {exc.remediation}", file=sys.stderr)
        return 1


def add_host_arguments(parser: ArgumentParser) -> None:
    parser.add_argument("--workspace-dir", default=None, help="Workspace root directory")
    parser.add_argument("--host", required=True, help="Host alias from config/hosts.yml or server address")
    parser.add_argument("--format", choices=["text", "json"], default="text")


def add_depot_arguments(parser: ArgumentParser) -> None:
    group = parser.add_argument_group("depot")
    group.add_argument("--remote-depot", default=None, help="Remote depot catalog URL ending in index.xml")
    group.add_argument("--local-depot", default=None, help="Offline bundle path ending in .zip")
    parser.add_argument("--proxy", default=None, help="Proxy URL used to fetch the depot")


def add_option_flags(parser: ArgumentParser, accepted: Collection[str] | None = None) -> None:
    """Register the install option flags; ``accepted`` limits them to the keys a host command takes."""
    for flag, dest, key, help_text in OPTION_FLAGS:
        if accepted is not None and key not in accepted:
            continue
        parser.add_argument(flag, dest=dest, action="store_true", help=help_text)


def options_from_args(argv: Any) -> InstallOptions:
    values = {dest: bool(getattr(argv, dest, False)) for _, dest, _, _ in OPTION_FLAGS}
    proxy = str(getattr(argv, "proxy", "") or "").strip() or None
    return InstallOptions(proxy=proxy, **values)
