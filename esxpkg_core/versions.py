"""Ordering helpers for VIB version strings (``<upstream>-<release>``)."""

from __future__ import annotations

import re

_TOKEN_RE = re.compile(r"\d+|[A-Za-z]+")


def _tokens(part: str) -> tuple[tuple[int, int | str], ...]:
    # Numeric runs sort above alphabetic runs, so 1.0a < 1.0.1.
    out: list[tuple[int, int | str]] = []
    for token in _TOKEN_RE.findall(part):
        if token.isdigit():
            out.append((1, int(token)))
        else:
            out.append((0, token.lower()))
    return tuple(out)


def version_key(version: str) -> tuple[tuple[tuple[int, int | str], ...], tuple[tuple[int, int | str], ...]]:
    raw = (version or "").strip()
    upstream, _, release = raw.partition("-")
    return _tokens(upstream), _tokens(release)


def compare_versions(a: str, b: str) -> int:
    ka = version_key(a)
    kb = version_key(b)
    if ka < kb:
        return -1
    if ka > kb:
        return 1
    return 0

