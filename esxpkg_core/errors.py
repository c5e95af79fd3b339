"""Error taxonomy for depot resolution, planning and host execution."""

from __future__ import annotations

from typing import Iterable


class EsxPkgError(RuntimeError):
    """Base error. Every subclass is terminal for the current invocation."""

    remediation: str = ""

    def __init__(self, message: str, *, remediation: str | None = None) -> None:
        super().__init__(message)
        if remediation is not None:
            self.remediation = remediation
        self.stage: str | None = None


class ConfigError(EsxPkgError):
    remediation = "Fix or remove the workspace configuration file."


class ConflictingArguments(EsxPkgError):
    remediation = "Pass exactly one of --remote-depot or --local-depot."


class InvalidDepotReference(EsxPkgError):
    remediation = "Point at a remote index.xml catalog or an existing offline bundle .zip file."


class DepotUnreachable(EsxPkgError):
    remediation = "Check the depot URL, network path and proxy settings, then retry."


class DepotUnreadable(EsxPkgError):
    remediation = "The depot answered but its metadata is corrupt; re-download or rebuild the depot."


class ProfileNotFound(EsxPkgError):
    remediation = "List the depot profiles with 'esxpkg depot-profiles' and pick an existing name."

    def __init__(self, profile: str, depot: str) -> None:
        super().__init__(f"image profile '{profile}' not found in depot {depot}")
        self.profile = profile
        self.depot = depot


class PackageNotFound(EsxPkgError):
    remediation = "List the depot VIBs with 'esxpkg depot-vibs' and check the name and version."


class AmbiguousPackageSpec(EsxPkgError):
    remediation = "Specify <vendor>:<name> to narrow the match down to one VIB."

    def __init__(self, spec: str, candidates: Iterable[str]) -> None:
        self.spec = spec
        self.candidates = tuple(sorted(candidates))
        super().__init__(f"more than one VIB matches '{spec}': {', '.join(self.candidates)}")


class WouldRemovePackages(EsxPkgError):
    remediation = "Re-run with --ok-to-remove to allow removal of VIBs missing from the target profile."

    def __init__(self, packages: Iterable[str]) -> None:
        self.packages = tuple(sorted(packages))
        super().__init__(f"target would remove installed VIBs: {', '.join(self.packages)}")


class ExecutorSessionFailure(EsxPkgError):
    remediation = "Check the host address, credentials, thumbprint and that esxcli is installed."


class ExecutorRejected(EsxPkgError):
    """The host refused the request. ``diagnostic`` is the host's own text."""

    remediation = "Resolve the problem reported by the host; it has full dependency visibility."

    def __init__(self, command: str, diagnostic: str) -> None:
        self.command = command
        self.diagnostic = diagnostic
        super().__init__(f"host rejected {command}: {diagnostic}")
