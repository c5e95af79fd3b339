"""Credential redaction for logged commands and URLs."""

from __future__ import annotations

from urllib.parse import urlsplit

_SENSITIVE_KEYS = ("password", "token", "authorization", "bearer")
_VALUE_FLAGS = {"--password", "-p", "--token", "--sessionid"}


def redact_url(value: str) -> str:
    if "://" not in value:
        return value
    parsed = urlsplit(value)
    if not parsed.password:
        return value
    safe_netloc = parsed.netloc.replace(f":{parsed.password}@", ":***@")
    return value.replace(parsed.netloc, safe_netloc)


def redact_command_for_log(command: list[str]) -> list[str]:
    redacted: list[str] = []
    skip_next = False
    for item in command:
        lower = item.lower()
        if skip_next:
            redacted.append("***")
            skip_next = False
            continue
        if lower in _VALUE_FLAGS:
            redacted.append(item)
            skip_next = True
            continue
        if any(key in lower for key in _SENSITIVE_KEYS):
            flag, sep, _ = item.partition("=")
            redacted.append(f"{flag}=***" if sep else "***")
            continue
        if item.startswith("--") and "=" in item:
            flag, _, value = item.partition("=")
            redacted.append(f"{flag}={redact_url(value)}")
            continue
        redacted.append(redact_url(item))
    return redacted
