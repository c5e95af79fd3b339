"""Workspace configuration: ``config/config.toml`` and the ``config/hosts.yml`` inventory."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import ConfigError

WORKSPACE_ENV = "ESXPKG_DIR"
DEFAULT_WORKSPACE_NAME = ".esxpkg"
CONFIG_FILENAME = "config.toml"
HOSTS_FILENAME = "hosts.yml"


@dataclass(frozen=True)
class HostConfig:
    server: str = ""
    username: str | None = None
    password: str | None = None
    thumbprint: str | None = None
    esxcli_path: str = "esxcli"
    timeout_seconds: float = 600.0


@dataclass(frozen=True)
class DepotConfig:
    probe_timeout_seconds: float = 10.0
    proxy: str | None = None
    verify_tls: bool = True


def resolve_workspace(workspace_dir: str | None, start_dir: Path | None = None) -> Path:
    if workspace_dir:
        return Path(workspace_dir).expanduser().resolve()
    env_dir = os.environ.get(WORKSPACE_ENV, "").strip()
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return ((start_dir or Path.cwd()) / DEFAULT_WORKSPACE_NAME).resolve()


def _resolve_env_value(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
        env_name = value[2:-1].strip()
        if env_name:
            return os.getenv(env_name, "")
    return value


def _optional_str(value: Any) -> str | None:
    value = _resolve_env_value(value)
    text = str(value).strip() if value is not None else ""
    return text or None


def _load_toml(workspace_root: Path) -> dict[str, Any]:
    config_path = workspace_root / "config" / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    try:
        return tomllib.loads(config_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"invalid configuration file {config_path}: {exc}") from exc


def _section(payload: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    section = payload.get(name)
    return section if isinstance(section, dict) else {}


def load_depot_config(workspace_root: Path) -> DepotConfig:
    section = _section(_load_toml(workspace_root), "depot")
    try:
        return DepotConfig(
            probe_timeout_seconds=float(section.get("probe_timeout_seconds", 10.0)),
            proxy=_optional_str(section.get("proxy")),
            verify_tls=bool(section.get("verify_tls", True)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid [depot] section: {exc}") from exc


def _default_host_config(workspace_root: Path) -> HostConfig:
    section = _section(_load_toml(workspace_root), "host")
    try:
        return HostConfig(
            username=_optional_str(section.get("username")),
            password=_optional_str(section.get("password")),
            thumbprint=_optional_str(section.get("thumbprint")),
            esxcli_path=str(section.get("esxcli_path") or "esxcli"),
            timeout_seconds=float(section.get("timeout_seconds", 600.0)),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid [host] section: {exc}") from exc


def load_host_inventory(workspace_root: Path) -> dict[str, dict[str, Any]]:
    path = workspace_root / "config" / HOSTS_FILENAME
    if not path.exists():
        return {}
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid host inventory {path}: {exc}") from exc
    if payload is None:
        return {}
    hosts = payload.get("hosts", payload) if isinstance(payload, dict) else None
    if not isinstance(hosts, dict):
        raise ConfigError(f"host inventory {path} must map aliases to host entries")
    return {str(alias): dict(entry) for alias, entry in hosts.items() if isinstance(entry, dict)}


def resolve_host(workspace_root: Path, host: str) -> HostConfig:
    """Look ``host`` up as an inventory alias, else treat it as the server address."""
    name = (host or "").strip()
    if not name:
        raise ConfigError("missing --host")
    defaults = _default_host_config(workspace_root)
    entry = load_host_inventory(workspace_root).get(name)
    if entry is None:
        return replace(defaults, server=name)
    server = _optional_str(entry.get("server"))
    if not server:
        raise ConfigError(f"host alias '{name}' has no server")
    return replace(
        defaults,
        server=server,
        username=_optional_str(entry.get("username")) or defaults.username,
        password=_optional_str(entry.get("password")) or defaults.password,
        thumbprint=_optional_str(entry.get("thumbprint")) or defaults.thumbprint,
    )
