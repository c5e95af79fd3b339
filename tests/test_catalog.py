from __future__ import annotations

import subprocess
from typing import Any, Mapping

import pytest

from esxpkg_core.catalog import CatalogReader
from esxpkg_core.config import HostConfig
from esxpkg_core.errors import (
    AmbiguousPackageSpec,
    DepotUnreadable,
    ExecutorRejected,
    ExecutorSessionFailure,
    PackageNotFound,
    ProfileNotFound,
)
from esxpkg_core.executor import EsxcliExecutor
from esxpkg_core.types import DepotKind, DepotReference, ImageProfileSpec, PackageSpec

DEPOT = DepotReference(kind=DepotKind.REMOTE, location="https://depot.example.com/index.xml")


class _FakeExecutor:
    def __init__(self, responses: Mapping[str, Any]) -> None:
        self.responses = dict(responses)
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def invoke(self, command: str, options: Mapping[str, Any]) -> Any:
        self.calls.append((command, dict(options)))
        value = self.responses[command]
        if isinstance(value, Exception):
            raise value
        return value


_VIBS = [
    {"Name": "nvme-pcie", "Version": "1.2.3-1", "Vendor": "VMW", "Acceptance Level": "VMwareCertified"},
    {"Name": "nvme-pcie", "Version": "1.2.4-1", "Vendor": "VMW", "Acceptance Level": "VMwareCertified"},
    {"Name": "qlnativefc", "Version": "4.1.9.0-1", "Vendor": "QLC", "Acceptance Level": "PartnerSupported"},
    {"Name": "qlnativefc", "Version": "4.1.8.0-1", "Vendor": "VMW", "Acceptance Level": "VMwareCertified"},
]


def test_list_profiles_passes_depot_and_reads_names() -> None:
    executor = _FakeExecutor(
        {
            "software.sources.profile.list": [
                {"Name": "ESXi-7.0U3c-19193900-standard", "Vendor": "VMware, Inc.", "Acceptance Level": "PartnerSupported"},
                {"Name": "ESXi-7.0U3c-19193900-no-tools", "Vendor": "VMware, Inc.", "Acceptance Level": "PartnerSupported"},
            ]
        }
    )
    profiles = CatalogReader(executor).list_profiles(DEPOT)
    assert {item.name for item in profiles} == {"ESXi-7.0U3c-19193900-standard", "ESXi-7.0U3c-19193900-no-tools"}
    assert executor.calls == [("software.sources.profile.list", {"depot": DEPOT.location})]


def test_rejected_listing_is_depot_unreadable() -> None:
    executor = _FakeExecutor(
        {"software.sources.vib.list": ExecutorRejected("software.sources.vib.list", "MetadataFormatError: bad zip")}
    )
    with pytest.raises(DepotUnreadable, match="MetadataFormatError"):
        CatalogReader(executor).list_packages(DEPOT)


def test_malformed_listing_is_depot_unreadable() -> None:
    executor = _FakeExecutor({"software.sources.profile.list": {"unexpected": "shape"}})
    with pytest.raises(DepotUnreadable):
        CatalogReader(executor).list_profiles(DEPOT)


def test_session_failure_is_not_translated() -> None:
    executor = _FakeExecutor({"software.sources.vib.list": ExecutorSessionFailure("cannot open session")})
    with pytest.raises(ExecutorSessionFailure):
        CatalogReader(executor).list_packages(DEPOT)


def test_unreadable_and_missing_have_different_remediation() -> None:
    assert DepotUnreadable("x").remediation != ProfileNotFound("p", "d").remediation


def test_resolve_profile_not_found() -> None:
    executor = _FakeExecutor({"software.sources.profile.list": [{"Name": "ESXi-7.0U3c-standard"}]})
    with pytest.raises(ProfileNotFound) as excinfo:
        CatalogReader(executor).resolve_profile(DEPOT, "ESXi-8.0-standard")
    assert excinfo.value.profile == "ESXi-8.0-standard"


def test_profile_packages_reads_vib_list() -> None:
    executor = _FakeExecutor(
        {
            "software.sources.profile.get": {
                "Name": "ESXi-7.0U3c-standard",
                "VIBs": ["esx-base 7.0.3-0.20.19193900", "VMW_bootbank_nvme-pcie_1.2.4-1"],
            }
        }
    )
    packages = CatalogReader(executor).profile_packages(DEPOT, ImageProfileSpec(name="ESXi-7.0U3c-standard"))
    assert packages == frozenset(
        {
            PackageSpec(name="esx-base", version="7.0.3-0.20.19193900"),
            PackageSpec(name="nvme-pcie", version="1.2.4-1", vendor="VMW"),
        }
    )
    assert executor.calls[0][1] == {"depot": DEPOT.location, "profile": "ESXi-7.0U3c-standard"}


def test_resolve_package_picks_newest_of_one_identity() -> None:
    executor = _FakeExecutor({"software.sources.vib.list": _VIBS})
    package = CatalogReader(executor).resolve_package(DEPOT, "nvme-pcie")
    assert package == PackageSpec(name="nvme-pcie", version="1.2.4-1", vendor="VMW")


def test_resolve_package_name_only_across_vendors_is_ambiguous() -> None:
    executor = _FakeExecutor({"software.sources.vib.list": _VIBS})
    with pytest.raises(AmbiguousPackageSpec) as excinfo:
        CatalogReader(executor).resolve_package(DEPOT, "qlnativefc")
    assert excinfo.value.candidates == ("QLC:qlnativefc", "VMW:qlnativefc")


def test_resolve_package_vendor_qualified_disambiguates() -> None:
    executor = _FakeExecutor({"software.sources.vib.list": _VIBS})
    package = CatalogReader(executor).resolve_package(DEPOT, "QLC:qlnativefc")
    assert package.vendor == "QLC"
    exact = CatalogReader(executor).resolve_package(DEPOT, "VMW:nvme-pcie:1.2.3-1")
    assert exact.version == "1.2.3-1"


def test_resolve_package_not_found() -> None:
    executor = _FakeExecutor({"software.sources.vib.list": _VIBS})
    with pytest.raises(PackageNotFound):
        CatalogReader(executor).resolve_package(DEPOT, "lsi-mr3")


def test_list_installed_uses_host_vib_list() -> None:
    executor = _FakeExecutor(
        {"software.vib.list": [{"Name": "esx-base", "Version": "7.0.3-0.20.19193900", "Vendor": "VMware"}]}
    )
    installed = CatalogReader(executor).list_installed()
    assert installed == frozenset({PackageSpec(name="esx-base", version="7.0.3-0.20.19193900", vendor="VMware")})
    assert executor.calls == [("software.vib.list", {})]


def test_resolve_package_vendor_case_is_one_identity() -> None:
    executor = _FakeExecutor(
        {
            "software.sources.vib.list": [
                {"Name": "lsi-msgpt3", "Version": "17.00.12.00-1", "Vendor": "VMW"},
                {"Name": "lsi-msgpt3", "Version": "17.00.13.00-1", "Vendor": "vmw"},
            ]
        }
    )
    package = CatalogReader(executor).resolve_package(DEPOT, "VMW:lsi-msgpt3")
    assert package.version == "17.00.13.00-1"


def test_depot_download_error_through_esxcli_is_unreadable(monkeypatch: pytest.MonkeyPatch) -> None:
    stderr = (
        "[MetadataDownloadError]\nCould not download from depot at https://depot.example.com/index.xml, "
        "skipping (('https://depot.example.com/index.xml', '', '<urlopen error [Errno 111] Connection refused>'))"
    )
    monkeypatch.setattr(
        subprocess,
        "run",
        lambda command, **kwargs: subprocess.CompletedProcess(args=command, returncode=1, stdout="", stderr=stderr),
    )
    reader = CatalogReader(EsxcliExecutor(HostConfig(server="esx01", username="root", password="VMware1!")))
    with pytest.raises(DepotUnreadable) as excinfo:
        reader.list_profiles(DEPOT)
    assert "MetadataDownloadError" in str(excinfo.value)
    assert "corrupt" in excinfo.value.remediation
