"""Client-side installation planning.

The plan is advisory. The host performs its own authoritative resolution and
may still reject a plan considered valid here; planning only exists to fail
fast on what can be detected locally (disallowed removals, for instance)
before a remote install call is made.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .errors import WouldRemovePackages
from .types import InstallationPlan, InstallOptions, PackageSpec, PackageUpgrade
from .versions import compare_versions

logger = logging.getLogger(__name__)


def _by_name(packages: Iterable[PackageSpec]) -> dict[str, PackageSpec]:
    return {package.name: package for package in sorted(packages, key=str)}


def build_plan(
    target: PackageSpec | Iterable[PackageSpec],
    installed: Iterable[PackageSpec],
    options: InstallOptions,
    *,
    keep_unlisted: bool = False,
) -> InstallationPlan:
    """Compute installs, upgrades and removals. Packages are identified by name.

    ``keep_unlisted`` leaves installed packages missing from the target alone,
    which is how a profile update behaves on the host.
    """
    current = _by_name(installed)
    if isinstance(target, PackageSpec):
        existing = current.get(target.name)
        if existing is None:
            return InstallationPlan(to_install=frozenset({target}))
        return InstallationPlan(to_upgrade=frozenset({PackageUpgrade(current=existing, target=target)}))

    wanted = _by_name(target)
    to_install: set[PackageSpec] = set()
    to_upgrade: set[PackageUpgrade] = set()
    for name, package in wanted.items():
        existing = current.get(name)
        if existing is None:
            to_install.add(package)
            continue
        if package.version is None or existing.version is None:
            continue
        order = compare_versions(package.version, existing.version)
        if order > 0 or (order < 0 and options.allow_downgrades):
            to_upgrade.add(PackageUpgrade(current=existing, target=package))

    to_remove: set[PackageSpec] = set()
    if not keep_unlisted:
        extra = {package for name, package in current.items() if name not in wanted}
        if extra and not options.ok_to_remove:
            raise WouldRemovePackages(package.name for package in extra)
        to_remove = extra

    plan = InstallationPlan(
        to_install=frozenset(to_install),
        to_upgrade=frozenset(to_upgrade),
        to_remove=frozenset(to_remove),
    )
    logger.info(
        "plan built install=%s upgrade=%s remove=%s",
        len(plan.to_install),
        len(plan.to_upgrade),
        len(plan.to_remove),
    )
    return plan
