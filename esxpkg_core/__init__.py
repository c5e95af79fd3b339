"""Depot resolution and installation planning for ESXi software management."""

from .catalog import CatalogReader
from .errors import (
    AmbiguousPackageSpec,
    ConfigError,
    ConflictingArguments,
    DepotUnreachable,
    DepotUnreadable,
    EsxPkgError,
    ExecutorRejected,
    ExecutorSessionFailure,
    InvalidDepotReference,
    PackageNotFound,
    ProfileNotFound,
    WouldRemovePackages,
)
from .executor import EsxcliExecutor, HostExecutor
from .invoker import InstallerInvoker
from .locator import DepotLocator, classify
from .planner import build_plan
from .types import (
    DepotKind,
    DepotReference,
    ImageProfileSpec,
    InstallationPlan,
    InstallationReport,
    InstallationResult,
    InstallOptions,
    Outcome,
    PackageSpec,
    PackageUpgrade,
)
from .workflow import SoftwareRequest, SoftwareWorkflow, Stage

__all__ = [
    "AmbiguousPackageSpec",
    "CatalogReader",
    "ConfigError",
    "ConflictingArguments",
    "DepotKind",
    "DepotLocator",
    "DepotReference",
    "DepotUnreachable",
    "DepotUnreadable",
    "EsxPkgError",
    "EsxcliExecutor",
    "ExecutorRejected",
    "ExecutorSessionFailure",
    "HostExecutor",
    "ImageProfileSpec",
    "InstallOptions",
    "InstallationPlan",
    "InstallationReport",
    "InstallationResult",
    "InstallerInvoker",
    "InvalidDepotReference",
    "Outcome",
    "PackageNotFound",
    "PackageSpec",
    "PackageUpgrade",
    "ProfileNotFound",
    "SoftwareRequest",
    "SoftwareWorkflow",
    "Stage",
    "WouldRemovePackages",
    "build_plan",
    "classify",
]
