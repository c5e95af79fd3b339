"""Datatypes shared by the locator, catalog reader, planner and invoker."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Mapping


class DepotKind(str, Enum):
    REMOTE = "remote"
    LOCAL_ARCHIVE = "local-archive"


@dataclass(frozen=True)
class DepotReference:
    kind: DepotKind
    location: str

    @property
    def is_remote(self) -> bool:
        return self.kind is DepotKind.REMOTE


@dataclass(frozen=True)
class PackageSpec:
    """A VIB identity: name plus optional vendor and version."""

    name: str
    version: str | None = None
    vendor: str | None = None
    acceptance_level: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("package spec requires a name")

    def __str__(self) -> str:
        label = f"{self.vendor}:{self.name}" if self.vendor else self.name
        return f"{label}@{self.version}" if self.version else label

    @property
    def identity(self) -> str:
        return f"{self.vendor.lower()}:{self.name}" if self.vendor else self.name

    def matches(self, candidate: "PackageSpec") -> bool:
        if self.name != candidate.name:
            return False
        if self.vendor is not None and (candidate.vendor or "").lower() != self.vendor.lower():
            return False
        if self.version is not None and candidate.version != self.version:
            return False
        return True

    @classmethod
    def from_vib_id(cls, vib_id: str) -> "PackageSpec":
        """Parse a host VIB ID such as ``VMware_bootbank_esx-base_7.0.3-0.20.19193900``."""
        parts = vib_id.strip().split("_", 2)
        if len(parts) != 3 or "_" not in parts[2]:
            raise ValueError(f"invalid VIB ID: {vib_id!r}")
        vendor, _bank, rest = parts
        name, version = rest.rsplit("_", 1)
        return cls(name=name, version=version, vendor=vendor)

    @classmethod
    def from_listing(cls, entry: Mapping[str, Any]) -> "PackageSpec":
        values = normalize_keys(entry)
        name = str(values.get("name") or "").strip()
        if not name:
            raise ValueError("listing entry has no Name")
        return cls(
            name=name,
            version=str(values.get("version") or "").strip() or None,
            vendor=str(values.get("vendor") or "").strip() or None,
            acceptance_level=str(values.get("acceptancelevel") or "").strip() or None,
        )

    @classmethod
    def from_text(cls, text: str) -> "PackageSpec":
        """Parse a VIB ID or a ``"name version"`` pair as found in profile listings."""
        value = text.strip()
        if " " in value:
            name, version = value.split(None, 1)
            return cls(name=name, version=version.strip())
        return cls.from_vib_id(value)


def colon_spec_candidates(spec: str) -> tuple[PackageSpec, ...]:
    """Interpret ``name``, ``name:version``/``vendor:name`` or ``vendor:name:version``."""
    parts = [item.strip() for item in spec.strip().split(":")]
    if not parts or any(not item for item in parts) or len(parts) > 3:
        raise ValueError(f"invalid VIB spec: {spec!r}")
    if len(parts) == 1:
        return (PackageSpec(name=parts[0]),)
    if len(parts) == 2:
        return (
            PackageSpec(name=parts[0], version=parts[1]),
            PackageSpec(name=parts[1], vendor=parts[0]),
        )
    return (PackageSpec(name=parts[1], version=parts[2], vendor=parts[0]),)


@dataclass(frozen=True)
class ImageProfileSpec:
    name: str
    vendor: str | None = field(default=None, compare=False)
    acceptance_level: str | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return self.name


_EXECUTOR_KEYS = {
    "dry_run": "dryrun",
    "force": "force",
    "maintenance_mode": "maintenancemode",
    "no_live_install": "noliveinstall",
    "no_sig_check": "nosigcheck",
    "allow_downgrades": "allowdowngrades",
    "no_hardware_warning": "nohardwarewarning",
    "ok_to_remove": "oktoremove",
    "proxy": "proxy",
}


@dataclass(frozen=True)
class InstallOptions:
    dry_run: bool = False
    force: bool = False
    maintenance_mode: bool = False
    no_live_install: bool = False
    no_sig_check: bool = False
    allow_downgrades: bool = False
    ok_to_remove: bool = False
    no_hardware_warning: bool = False
    proxy: str | None = None

    def to_executor_options(self) -> dict[str, Any]:
        """Boolean flags are present only when set; strings only when non-empty."""
        mapping: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, bool):
                if value:
                    mapping[_EXECUTOR_KEYS[item.name]] = True
            elif value:
                mapping[_EXECUTOR_KEYS[item.name]] = str(value)
        return mapping

    def risk_warnings(self) -> tuple[str, ...]:
        warnings: list[str] = []
        if self.force:
            warnings.append(
                "--force skipped dependency, conflict and acceptance checks; the host may be left unsupported"
            )
        if self.no_sig_check:
            warnings.append(
                "--no-sig-check disabled signature verification; unsigned or tampered VIBs may have been accepted"
            )
        return tuple(warnings)


@dataclass(frozen=True)
class PackageUpgrade:
    current: PackageSpec
    target: PackageSpec

    def __str__(self) -> str:
        return f"{self.current} -> {self.target}"


@dataclass(frozen=True)
class InstallationPlan:
    to_install: frozenset[PackageSpec] = frozenset()
    to_upgrade: frozenset[PackageUpgrade] = frozenset()
    to_remove: frozenset[PackageSpec] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not (self.to_install or self.to_upgrade or self.to_remove)

    def as_dict(self) -> dict[str, list[str]]:
        return {
            "to_install": sorted(str(item) for item in self.to_install),
            "to_upgrade": sorted(str(item) for item in self.to_upgrade),
            "to_remove": sorted(str(item) for item in self.to_remove),
        }


@dataclass(frozen=True)
class InstallationResult:
    installed: tuple[PackageSpec, ...] = ()
    removed: tuple[PackageSpec, ...] = ()
    skipped: tuple[PackageSpec, ...] = ()
    reboot_required: bool = False
    message: str = ""


class Outcome(str, Enum):
    DRY_RUN = "dry-run"
    NO_CHANGES = "no-changes"
    REBOOT_REQUIRED = "reboot-required"
    LIVE = "live"

    @property
    def message(self) -> str:
        return _OUTCOME_MESSAGES[self]


_OUTCOME_MESSAGES = {
    Outcome.DRY_RUN: "dry run, no changes made",
    Outcome.NO_CHANGES: "no changes, already applied",
    Outcome.REBOOT_REQUIRED: "applied; reboot required to activate",
    Outcome.LIVE: "applied live",
}


@dataclass(frozen=True)
class InstallationReport:
    result: InstallationResult
    outcome: Outcome
    warnings: tuple[str, ...] = ()
    plan: InstallationPlan | None = None


def normalize_keys(entry: Mapping[str, Any]) -> dict[str, Any]:
    """Fold ``"VIBs Installed"``, ``VIBsInstalled`` and ``vibs_installed`` to one key."""
    return {
        "".join(ch for ch in str(key).lower() if ch.isalnum()): value
        for key, value in entry.items()
    }
