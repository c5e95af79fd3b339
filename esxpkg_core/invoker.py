"""Installer invoker: submit a validated target to the host and interpret the result."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from .errors import ExecutorRejected
from .executor import HostExecutor
from .types import (
    DepotReference,
    ImageProfileSpec,
    InstallationReport,
    InstallationResult,
    InstallOptions,
    Outcome,
    PackageSpec,
    normalize_keys,
)

logger = logging.getLogger(__name__)

Target = ImageProfileSpec | PackageSpec | str

_COMMON_OPTIONS = frozenset({"dryrun", "force", "maintenancemode", "noliveinstall", "nosigcheck", "proxy"})

# Option keys each host command takes; anything else is refused by the host.
ACCEPTED_OPTIONS: dict[str, frozenset[str]] = {
    "software.profile.install": _COMMON_OPTIONS | {"oktoremove", "nohardwarewarning"},
    "software.profile.update": _COMMON_OPTIONS | {"allowdowngrades", "nohardwarewarning"},
    "software.vib.install": _COMMON_OPTIONS,
    "software.vib.update": _COMMON_OPTIONS,
}


class InstallerInvoker:
    """Delegates every mutation to the host executor; never installs anything itself."""

    def __init__(self, executor: HostExecutor) -> None:
        self.executor = executor

    def apply(
        self,
        depot: DepotReference | None,
        target: Target,
        options: InstallOptions,
        *,
        update: bool = False,
    ) -> InstallationReport:
        command, mapping = build_request(depot, target, options, update=update)
        logger.info("invoking %s target=%s", command, target)
        payload = self.executor.invoke(command, mapping)
        result = parse_result(command, payload)
        return interpret(result, options)


def build_request(
    depot: DepotReference | None,
    target: Target,
    options: InstallOptions,
    *,
    update: bool = False,
) -> tuple[str, dict[str, Any]]:
    verb = "update" if update else "install"
    mapping: dict[str, Any] = {}
    if isinstance(target, ImageProfileSpec):
        if depot is None:
            raise ValueError("an image profile target requires a depot")
        command = f"software.profile.{verb}"
        mapping["depot"] = depot.location
        mapping["profile"] = target.name
    elif isinstance(target, PackageSpec):
        if depot is None:
            raise ValueError("a VIB name target requires a depot")
        command = f"software.vib.{verb}"
        mapping["depot"] = depot.location
        mapping["vibname"] = _vibname(target)
    else:
        command = f"software.vib.{verb}"
        mapping["viburl"] = target
    accepted = ACCEPTED_OPTIONS[command]
    for key, value in options.to_executor_options().items():
        if key not in accepted:
            logger.warning("%s does not take option %s; dropped", command, key)
            continue
        mapping[key] = value
    return command, mapping


def _vibname(package: PackageSpec) -> str:
    return ":".join(part for part in (package.vendor, package.name, package.version) if part)


def parse_result(command: str, payload: Any) -> InstallationResult:
    if isinstance(payload, list) and len(payload) == 1:
        payload = payload[0]
    if not isinstance(payload, Mapping):
        raise ExecutorRejected(command, f"unexpected install result: {payload!r}")
    values = normalize_keys(payload)
    return InstallationResult(
        installed=_packages(values.get("vibsinstalled")),
        removed=_packages(values.get("vibsremoved")),
        skipped=_packages(values.get("vibsskipped")),
        reboot_required=_truthy(values.get("rebootrequired")),
        message=str(values.get("message") or ""),
    )


def interpret(result: InstallationResult, options: InstallOptions) -> InstallationReport:
    """Dry run first, then no-op, then reboot needed, else live."""
    if options.dry_run:
        outcome = Outcome.DRY_RUN
    elif not result.installed and not result.removed:
        outcome = Outcome.NO_CHANGES
    elif options.no_live_install or result.reboot_required:
        outcome = Outcome.REBOOT_REQUIRED
    else:
        outcome = Outcome.LIVE
    warnings = options.risk_warnings()
    for warning in warnings:
        logger.warning(warning)
    return InstallationReport(result=result, outcome=outcome, warnings=warnings)


def _packages(raw: Any) -> tuple[PackageSpec, ...]:
    if not raw:
        return ()
    items = raw if isinstance(raw, list) else str(raw).split(",")
    packages: list[PackageSpec] = []
    for item in items:
        text = str(item).strip()
        if not text:
            continue
        try:
            packages.append(PackageSpec.from_vib_id(text))
        except ValueError:
            packages.append(PackageSpec(name=text))
    return tuple(packages)


def _truthy(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "yes", "1"}
    return bool(value)
