"""Host executor: forwards software-management commands to the host through esxcli."""

from __future__ import annotations

import json
import logging
import re
import subprocess
from typing import Any, Mapping, Protocol

from .config import HostConfig
from .errors import ExecutorRejected, ExecutorSessionFailure
from .security import redact_command_for_log

logger = logging.getLogger(__name__)

# Text esxcli prints when it never reached the host's software manager.
_SESSION_MARKERS = (
    "could not connect",
    "connection refused",
    "connection timed out",
    "cannot complete login",
    "incorrect user name or password",
    "certificate error",
    "certificate verify failed",
    "name or service not known",
    "no route to host",
)

# Host-side failures start with a bracketed error class, e.g. "[MetadataDownloadError]".
_HOST_ERROR_RE = re.compile(r"^\s*\[\w+\]", re.MULTILINE)

_FLAG_NAMES = {
    "depot": "depot",
    "profile": "profile",
    "vibname": "vibname",
    "viburl": "viburl",
    "dryrun": "dry-run",
    "force": "force",
    "maintenancemode": "maintenance-mode",
    "noliveinstall": "no-live-install",
    "nosigcheck": "no-sig-check",
    "allowdowngrades": "allow-downgrades",
    "nohardwarewarning": "no-hardware-warning",
    "oktoremove": "ok-to-remove",
    "proxy": "proxy",
}


class HostExecutor(Protocol):
    def invoke(self, command: str, options: Mapping[str, Any]) -> Any: ...


class EsxcliExecutor:
    """Thin esxcli CLI wrapper. One attempt per call; failures are never retried."""

    def __init__(self, config: HostConfig) -> None:
        self.config = config

    def invoke(self, command: str, options: Mapping[str, Any]) -> Any:
        argv = self.build_command(command, options)
        timeout = max(float(self.config.timeout_seconds), 1.0)
        logger.debug("esxcli command cmd=%s", " ".join(redact_command_for_log(argv)))
        try:
            result = subprocess.run(
                argv,
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as exc:
            raise ExecutorSessionFailure(
                f"esxcli not found at '{self.config.esxcli_path}'. Install the vSphere CLI and ensure it is in PATH."
            ) from exc
        except subprocess.TimeoutExpired as exc:
            raise ExecutorSessionFailure(
                f"esxcli {command} on {self.config.server} timed out after {timeout:.0f}s"
            ) from exc
        if result.returncode != 0:
            detail = (result.stderr or "").strip() or (result.stdout or "").strip()
            if _is_session_failure(detail):
                raise ExecutorSessionFailure(f"cannot open session to {self.config.server}: {detail}")
            raise ExecutorRejected(command, detail or f"esxcli exited with status {result.returncode}")
        return _parse_output(command, result.stdout)

    def build_command(self, command: str, options: Mapping[str, Any]) -> list[str]:
        argv = [self.config.esxcli_path, "--server", self.config.server]
        if self.config.username:
            argv += ["--username", self.config.username]
        if self.config.password:
            argv += ["--password", self.config.password]
        if self.config.thumbprint:
            argv += ["--thumbprint", self.config.thumbprint]
        argv.append("--formatter=json")
        argv += [part for part in command.split(".") if part]
        for key, value in options.items():
            flag = f"--{_FLAG_NAMES.get(key, key)}"
            if value is True:
                argv.append(flag)
            elif value is False or value is None:
                continue
            elif isinstance(value, (list, tuple)):
                argv += [f"{flag}={item}" for item in value]
            else:
                argv.append(f"{flag}={value}")
        return argv


def _is_session_failure(detail: str) -> bool:
    if _HOST_ERROR_RE.search(detail):
        return False
    lowered = detail.lower()
    return any(marker in lowered for marker in _SESSION_MARKERS)


def _parse_output(command: str, stdout: str | None) -> Any:
    text = (stdout or "").strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ExecutorRejected(command, f"unparsable esxcli output: {text[:200]}") from exc
