"""Install and update image profiles and VIBs on a host."""

from __future__ import annotations

import json
import sys
from argparse import ArgumentParser
from typing import Any

from esxpkg_core.api import esxpkgcommand
from esxpkg_core.config import load_depot_config, resolve_host
from esxpkg_core.errors import EsxPkgError
from esxpkg_core.executor import EsxcliExecutor
from esxpkg_core.invoker import ACCEPTED_OPTIONS
from esxpkg_core.locator import DepotLocator
from esxpkg_core.types import InstallationPlan, InstallationReport
from esxpkg_core.workflow import SoftwareRequest, SoftwareWorkflow

from .commands import (
    _WorkspaceAwareCommand,
    add_depot_arguments,
    add_host_arguments,
    add_option_flags,
    options_from_args,
)


class _SoftwareCommand(_WorkspaceAwareCommand):
    target: str = "profile"
    update: bool = False

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        add_host_arguments(parser)
        add_depot_arguments(parser)
        if cls.target == "profile":
            parser.add_argument("--profile", required=True, help="Image profile name in the depot")
        else:
            parser.add_argument("--vib", default=None, help="VIB spec: name, vendor:name or vendor:name:version")
            parser.add_argument("--vib-url", default=None, help="Direct URL of a .vib file (no depot)")
        verb = "update" if cls.update else "install"
        add_option_flags(parser, ACCEPTED_OPTIONS[f"software.{cls.target}.{verb}"])

    def run(self, argv: Any) -> int:
        try:
            workflow = self._workflow(argv)
            report = workflow.run(self._request(argv))
        except EsxPkgError as exc:
            return self._fail(exc, argv)
        self._print_report(report, argv)
        return 0

    def _workflow(self, argv: Any) -> SoftwareWorkflow:
        workspace_root = self._resolve(getattr(argv, "workspace_dir", None))
        executor = EsxcliExecutor(resolve_host(workspace_root, str(getattr(argv, "host", "") or "")))
        return SoftwareWorkflow(executor, DepotLocator(load_depot_config(workspace_root)))

    def _request(self, argv: Any) -> SoftwareRequest:
        return SoftwareRequest(
            remote_depot=getattr(argv, "remote_depot", None),
            local_depot=getattr(argv, "local_depot", None),
            profile=getattr(argv, "profile", None),
            vib=getattr(argv, "vib", None),
            vib_url=getattr(argv, "vib_url", None),
            update=self.update,
            options=options_from_args(argv),
        )

    def _print_report(self, report: InstallationReport, argv: Any) -> None:
        result = report.result
        for warning in report.warnings:
            print(f"{self._prefix()} warning: {warning}", file=sys.stderr)
        if str(getattr(argv, "format", "text")) == "json":
            payload = {
                "ok": True,
                "outcome": report.outcome.value,
                "message": report.outcome.message,
                "host_message": result.message,
                "reboot_required": result.reboot_required,
                "installed": [str(item) for item in result.installed],
                "removed": [str(item) for item in result.removed],
                "skipped": [str(item) for item in result.skipped],
                "plan": report.plan.as_dict() if report.plan is not None else None,
                "warnings": list(report.warnings),
            }
            print(json.dumps(payload, indent=2))
            return
        if report.plan is not None:
            print_plan(self._prefix(), report.plan)
        print(f"{self._prefix()} {report.outcome.message}")
        if result.installed:
            print(f"{self._prefix()} installed={', '.join(str(item) for item in result.installed)}")
        if result.removed:
            print(f"{self._prefix()} removed={', '.join(str(item) for item in result.removed)}")
        if result.skipped:
            print(f"{self._prefix()} skipped={len(result.skipped)}")


def print_plan(prefix: str, plan: InstallationPlan) -> None:
    print(
        f"{prefix} plan install={len(plan.to_install)} upgrade={len(plan.to_upgrade)} "
        f"remove={len(plan.to_remove)}"
    )
    for item in sorted(plan.to_install, key=str):
        print(f"{prefix}   + {item}")
    for item in sorted(plan.to_upgrade, key=str):
        print(f"{prefix}   ^ {item}")
    for item in sorted(plan.to_remove, key=str):
        print(f"{prefix}   - {item}")


@esxpkgcommand(name="profile-install")
class ProfileInstallCommand(_SoftwareCommand):
    """Install an image profile, replacing the host's current baseline."""

    target = "profile"
    update = False


@esxpkgcommand(name="profile-update")
class ProfileUpdateCommand(_SoftwareCommand):
    """Update the host to an image profile, keeping VIBs the profile does not list."""

    target = "profile"
    update = True


@esxpkgcommand(name="vib-install")
class VibInstallCommand(_SoftwareCommand):
    """Install a single VIB from a depot or a direct URL."""

    target = "vib"
    update = False


@esxpkgcommand(name="vib-update")
class VibUpdateCommand(_SoftwareCommand):
    """Update a single VIB from a depot or a direct URL."""

    target = "vib"
    update = True


@esxpkgcommand(name="plan")
class PlanCommand(_SoftwareCommand):
    """Build and print the installation plan without calling the install operation."""

    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        add_host_arguments(parser)
        add_depot_arguments(parser)
        parser.add_argument("--profile", default=None, help="Image profile name in the depot")
        parser.add_argument("--vib", default=None, help="VIB spec: name, vendor:name or vendor:name:version")
        parser.add_argument("--update", action="store_true", help="Plan a profile update (keep unlisted VIBs)")
        add_option_flags(parser)

    def run(self, argv: Any) -> int:
        self.update = bool(getattr(argv, "update", False))
        try:
            plan = self._workflow(argv).plan(self._request(argv))
        except EsxPkgError as exc:
            return self._fail(exc, argv)
        if plan is None:
            return 0
        if str(getattr(argv, "format", "text")) == "json":
            print(json.dumps({"ok": True, "plan": plan.as_dict(), "empty": plan.is_empty}, indent=2))
            return 0
        print_plan(self._prefix(), plan)
        if plan.is_empty:
            print(f"{self._prefix()} nothing to do")
        return 0
