"""Depot locator: classify a depot reference and check that it exists."""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlsplit

import requests

from .config import DepotConfig
from .errors import ConflictingArguments, DepotUnreachable, InvalidDepotReference
from .security import redact_url
from .types import DepotKind, DepotReference

logger = logging.getLogger(__name__)

_KIND_BY_EXTENSION = {
    "xml": DepotKind.REMOTE,
    "zip": DepotKind.LOCAL_ARCHIVE,
}


def classify(reference: str) -> DepotReference:
    """Classify by the final segment's extension only. No I/O."""
    value = (reference or "").strip()
    if not value:
        raise InvalidDepotReference("empty depot reference")
    path = urlsplit(value).path if "://" in value else value
    segment = path.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1]
    _, dot, extension = segment.rpartition(".")
    kind = _KIND_BY_EXTENSION.get(extension.lower()) if dot else None
    if kind is None:
        raise InvalidDepotReference(
            f"depot reference must end in .xml (remote catalog) or .zip (offline bundle): {redact_url(value)}"
        )
    return DepotReference(kind=kind, location=value)


class DepotLocator:
    def __init__(self, config: DepotConfig | None = None) -> None:
        self.config = config or DepotConfig()

    def locate(self, reference: str, *, proxy: str | None = None) -> DepotReference:
        depot = classify(reference)
        if depot.is_remote:
            self._probe(depot.location, proxy=proxy or self.config.proxy)
        else:
            self._check_archive(depot.location)
        return depot

    def locate_exclusive(
        self,
        *,
        remote: str | None,
        local: str | None,
        proxy: str | None = None,
    ) -> DepotReference:
        remote = (remote or "").strip() or None
        local = (local or "").strip() or None
        if remote and local:
            raise ConflictingArguments("both a remote depot and a local depot were given")
        if not remote and not local:
            raise ConflictingArguments("one of --remote-depot or --local-depot is required")
        expected = DepotKind.REMOTE if remote else DepotKind.LOCAL_ARCHIVE
        reference = remote or local or ""
        if classify(reference).kind is not expected:
            flag = "--remote-depot" if remote else "--local-depot"
            raise InvalidDepotReference(f"{flag} does not name a {expected.value} depot: {redact_url(reference)}")
        return self.locate(reference, proxy=proxy)

    def _check_archive(self, location: str) -> None:
        path = Path(location).expanduser()
        if not path.is_file():
            raise InvalidDepotReference(f"offline bundle not found: {location}")
        logger.info("depot archive present path=%s size=%s", path, path.stat().st_size)

    def _probe(self, url: str, *, proxy: str | None) -> None:
        scheme = urlsplit(url).scheme.lower()
        if scheme not in {"http", "https", "file"}:
            raise InvalidDepotReference(f"unsupported depot URL scheme '{scheme}': {redact_url(url)}")
        if scheme == "file":
            return
        timeout = max(float(self.config.probe_timeout_seconds), 0.1)
        proxies = {"http": proxy, "https": proxy} if proxy else None
        safe_url = redact_url(url)
        try:
            response = requests.head(
                url,
                timeout=timeout,
                allow_redirects=True,
                proxies=proxies,
                verify=self.config.verify_tls,
            )
            if response.status_code == 405:
                response = requests.get(
                    url,
                    timeout=timeout,
                    stream=True,
                    proxies=proxies,
                    verify=self.config.verify_tls,
                )
                response.close()
        except requests.Timeout as exc:
            raise DepotUnreachable(f"depot {safe_url} did not answer within {timeout:.1f}s") from exc
        except requests.RequestException as exc:
            raise DepotUnreachable(f"depot {safe_url} is unreachable: {exc}") from exc
        if response.status_code >= 400:
            raise DepotUnreachable(f"depot {safe_url} answered with status {response.status_code}")
        logger.info("depot reachable url=%s status=%s", safe_url, response.status_code)
