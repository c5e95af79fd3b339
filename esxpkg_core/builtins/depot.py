"""Read-only depot listings."""

from __future__ import annotations

import json
from abc import abstractmethod
from argparse import ArgumentParser
from typing import Any

from esxpkg_core.api import esxpkgcommand
from esxpkg_core.catalog import CatalogReader
from esxpkg_core.config import load_depot_config, resolve_host
from esxpkg_core.errors import EsxPkgError
from esxpkg_core.executor import EsxcliExecutor
from esxpkg_core.locator import DepotLocator
from esxpkg_core.types import DepotReference
from esxpkg_core.versions import version_key

from .commands import _WorkspaceAwareCommand, add_depot_arguments, add_host_arguments


class _DepotCommand(_WorkspaceAwareCommand):
    @classmethod
    def configure(cls, parser: ArgumentParser) -> None:
        add_host_arguments(parser)
        add_depot_arguments(parser)

    def run(self, argv: Any) -> int:
        workspace_root = self._resolve(getattr(argv, "workspace_dir", None))
        try:
            locator = DepotLocator(load_depot_config(workspace_root))
            depot = locator.locate_exclusive(
                remote=getattr(argv, "remote_depot", None),
                local=getattr(argv, "local_depot", None),
                proxy=str(getattr(argv, "proxy", "") or "").strip() or None,
            )
            executor = EsxcliExecutor(resolve_host(workspace_root, str(getattr(argv, "host", "") or "")))
            rows = self._rows(CatalogReader(executor), depot)
        except EsxPkgError as exc:
            return self._fail(exc, argv)
        if str(getattr(argv, "format", "text")) == "json":
            print(json.dumps({"ok": True, "depot": depot.location, "count": len(rows), "items": rows}, indent=2))
            return 0
        if not rows:
            print(f"{self._prefix()} depot lists no entries")
            return 0
        for row in rows:
            print(f"{self._prefix()} " + " ".join(f"{key}={value or '-'}" for key, value in row.items()))
        return 0

    @abstractmethod
    def _rows(self, catalog: CatalogReader, depot: DepotReference) -> list[dict[str, Any]]:
        """Rows to print, one mapping per depot entry."""


@esxpkgcommand(name="depot-profiles")
class DepotProfilesCommand(_DepotCommand):
    """List the image profiles a depot offers."""

    def _rows(self, catalog: CatalogReader, depot: DepotReference) -> list[dict[str, Any]]:
        profiles = sorted(catalog.list_profiles(depot), key=lambda item: item.name)
        return [
            {"name": item.name, "vendor": item.vendor, "acceptance": item.acceptance_level}
            for item in profiles
        ]


@esxpkgcommand(name="depot-vibs")
class DepotVibsCommand(_DepotCommand):
    """List the VIBs a depot offers."""

    def _rows(self, catalog: CatalogReader, depot: DepotReference) -> list[dict[str, Any]]:
        packages = sorted(
            catalog.list_packages(depot),
            key=lambda item: (item.name, item.vendor or "", version_key(item.version or "")),
        )
        return [
            {
                "name": item.name,
                "version": item.version,
                "vendor": item.vendor,
                "acceptance": item.acceptance_level,
            }
            for item in packages
        ]
