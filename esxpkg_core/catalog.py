"""Catalog reader: depot and host listings through the executor's own list operations."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Mapping

from .errors import (
    AmbiguousPackageSpec,
    DepotUnreadable,
    ExecutorRejected,
    PackageNotFound,
    ProfileNotFound,
)
from .executor import HostExecutor
from .security import redact_url
from .types import (
    DepotReference,
    ImageProfileSpec,
    PackageSpec,
    colon_spec_candidates,
    normalize_keys,
)
from .versions import version_key

logger = logging.getLogger(__name__)


class CatalogReader:
    def __init__(self, executor: HostExecutor) -> None:
        self.executor = executor

    def list_profiles(self, depot: DepotReference) -> frozenset[ImageProfileSpec]:
        rows = self._depot_rows("software.sources.profile.list", depot)
        profiles: set[ImageProfileSpec] = set()
        for row in rows:
            values = normalize_keys(row)
            name = str(values.get("name") or "").strip()
            if not name:
                raise DepotUnreadable(f"depot {redact_url(depot.location)} lists a profile without a name")
            profiles.add(
                ImageProfileSpec(
                    name=name,
                    vendor=str(values.get("vendor") or "").strip() or None,
                    acceptance_level=str(values.get("acceptancelevel") or "").strip() or None,
                )
            )
        return frozenset(profiles)

    def list_packages(self, depot: DepotReference) -> frozenset[PackageSpec]:
        rows = self._depot_rows("software.sources.vib.list", depot)
        try:
            return frozenset(PackageSpec.from_listing(row) for row in rows)
        except ValueError as exc:
            raise DepotUnreadable(f"depot {redact_url(depot.location)} has an invalid VIB entry: {exc}") from exc

    def resolve_profile(self, depot: DepotReference, name: str) -> ImageProfileSpec:
        for profile in self.list_profiles(depot):
            if profile.name == name:
                return profile
        raise ProfileNotFound(name, redact_url(depot.location))

    def profile_packages(self, depot: DepotReference, profile: ImageProfileSpec) -> frozenset[PackageSpec]:
        payload = self._depot_call("software.sources.profile.get", depot, {"profile": profile.name})
        if isinstance(payload, list) and len(payload) == 1:
            payload = payload[0]
        if not isinstance(payload, Mapping):
            raise DepotUnreadable(f"unexpected profile payload for '{profile.name}'")
        vibs = normalize_keys(payload).get("vibs")
        if not isinstance(vibs, list):
            raise DepotUnreadable(f"profile '{profile.name}' has no VIB list")
        try:
            return frozenset(_package_from_entry(item) for item in vibs)
        except ValueError as exc:
            raise DepotUnreadable(f"profile '{profile.name}' has an invalid VIB entry: {exc}") from exc

    def resolve_package(self, depot: DepotReference, spec: str) -> PackageSpec:
        """Match a colon spec against the depot; newest version wins within one vendor:name."""
        try:
            candidates = colon_spec_candidates(spec)
        except ValueError as exc:
            raise PackageNotFound(str(exc)) from exc
        matches = [
            package
            for package in self.list_packages(depot)
            if any(candidate.matches(package) for candidate in candidates)
        ]
        if not matches:
            raise PackageNotFound(f"no VIB matching '{spec}' in depot {redact_url(depot.location)}")
        labels = {package.identity: str(replace(package, version=None)) for package in matches}
        if len(labels) > 1:
            raise AmbiguousPackageSpec(spec, labels.values())
        selected = max(matches, key=lambda package: version_key(package.version or ""))
        logger.info("resolved vib spec=%s package=%s", spec, selected)
        return selected

    def list_installed(self) -> frozenset[PackageSpec]:
        payload = self.executor.invoke("software.vib.list", {})
        rows = _as_rows("software.vib.list", payload)
        try:
            return frozenset(PackageSpec.from_listing(row) for row in rows)
        except ValueError as exc:
            raise ExecutorRejected("software.vib.list", f"invalid installed VIB entry: {exc}") from exc

    def _depot_call(self, command: str, depot: DepotReference, extra: Mapping[str, Any] | None = None) -> Any:
        options = {"depot": depot.location, **(extra or {})}
        try:
            return self.executor.invoke(command, options)
        except ExecutorRejected as exc:
            raise DepotUnreadable(
                f"cannot read depot {redact_url(depot.location)}: {exc.diagnostic}"
            ) from exc

    def _depot_rows(self, command: str, depot: DepotReference) -> list[Mapping[str, Any]]:
        payload = self._depot_call(command, depot)
        try:
            return _as_rows(command, payload)
        except ExecutorRejected as exc:
            raise DepotUnreadable(f"cannot read depot {redact_url(depot.location)}: {exc.diagnostic}") from exc


def _as_rows(command: str, payload: Any) -> list[Mapping[str, Any]]:
    if payload is None:
        return []
    if not isinstance(payload, list) or not all(isinstance(item, Mapping) for item in payload):
        raise ExecutorRejected(command, "expected a list of records")
    return list(payload)


def _package_from_entry(entry: Any) -> PackageSpec:
    if isinstance(entry, Mapping):
        return PackageSpec.from_listing(entry)
    return PackageSpec.from_text(str(entry))
