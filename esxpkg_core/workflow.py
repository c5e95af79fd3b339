"""Per-invocation pipeline: validate, locate, resolve, plan, invoke, report."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator

from .catalog import CatalogReader
from .errors import ConflictingArguments, EsxPkgError
from .executor import HostExecutor
from .invoker import InstallerInvoker, Target
from .locator import DepotLocator
from .planner import build_plan
from .types import DepotReference, InstallationPlan, InstallationReport, InstallOptions

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    VALIDATING = "validating"
    LOCATING = "locating"
    RESOLVING = "resolving"
    PLANNING = "planning"
    INVOKING = "invoking"
    REPORTING = "reporting"


@dataclass(frozen=True)
class SoftwareRequest:
    remote_depot: str | None = None
    local_depot: str | None = None
    profile: str | None = None
    vib: str | None = None
    vib_url: str | None = None
    update: bool = False
    options: InstallOptions = field(default_factory=InstallOptions)


@dataclass(frozen=True)
class _Prepared:
    depot: DepotReference | None
    target: Target
    plan: InstallationPlan | None


@contextmanager
def _stage(stage: Stage) -> Iterator[None]:
    logger.debug("stage=%s", stage.value)
    try:
        yield
    except EsxPkgError as exc:
        if exc.stage is None:
            exc.stage = stage.value
        raise


class SoftwareWorkflow:
    def __init__(self, executor: HostExecutor, locator: DepotLocator | None = None) -> None:
        self.locator = locator or DepotLocator()
        self.catalog = CatalogReader(executor)
        self.invoker = InstallerInvoker(executor)

    def plan(self, request: SoftwareRequest) -> InstallationPlan | None:
        return self._prepare(request).plan

    def run(self, request: SoftwareRequest) -> InstallationReport:
        prepared = self._prepare(request)
        with _stage(Stage.INVOKING):
            report = self.invoker.apply(
                prepared.depot,
                prepared.target,
                request.options,
                update=request.update,
            )
        with _stage(Stage.REPORTING):
            logger.info("outcome=%s", report.outcome.value)
            return replace(report, plan=prepared.plan)

    def _prepare(self, request: SoftwareRequest) -> _Prepared:
        with _stage(Stage.VALIDATING):
            _validate(request)

        if request.vib_url:
            # Direct VIB URLs carry no catalog to plan against; the host resolves them.
            return _Prepared(depot=None, target=request.vib_url.strip(), plan=None)

        with _stage(Stage.LOCATING):
            depot = self.locator.locate_exclusive(
                remote=request.remote_depot,
                local=request.local_depot,
                proxy=request.options.proxy,
            )

        with _stage(Stage.RESOLVING):
            installed = self.catalog.list_installed()
            if request.profile:
                profile = self.catalog.resolve_profile(depot, request.profile.strip())
                wanted = self.catalog.profile_packages(depot, profile)
                target: Target = profile
            else:
                package = self.catalog.resolve_package(depot, request.vib or "")
                target = package

        with _stage(Stage.PLANNING):
            if request.profile:
                plan = build_plan(wanted, installed, request.options, keep_unlisted=request.update)
            else:
                plan = build_plan(package, installed, request.options)
        return _Prepared(depot=depot, target=target, plan=plan)


def _validate(request: SoftwareRequest) -> None:
    targets = [name for name, value in (
        ("--profile", request.profile),
        ("--vib", request.vib),
        ("--vib-url", request.vib_url),
    ) if value and value.strip()]
    if len(targets) != 1:
        given = ", ".join(targets) if targets else "none"
        raise ConflictingArguments(
            f"exactly one of --profile, --vib or --vib-url is required (given: {given})",
            remediation="Pass exactly one target.",
        )
    if request.vib_url and (request.remote_depot or request.local_depot):
        raise ConflictingArguments(
            "--vib-url cannot be combined with a depot",
            remediation="Drop the depot arguments when installing from --vib-url.",
        )
