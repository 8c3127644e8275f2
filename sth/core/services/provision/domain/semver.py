"""
L1 Domain — Semantic version parsing (pure).

Only exact ``major.minor.patch`` numeric triples are understood;
anything else (pre-release suffixes, two-part versions, words) is
rejected so callers can skip it.  No I/O.
"""

from __future__ import annotations

import re

_SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)$")


def parse_semver(version: str) -> tuple[int, int, int] | None:
    """Parse ``"1.10.0"`` → ``(1, 10, 0)``; expects no leading ``v``."""
    m = _SEMVER_RE.match(version.strip())
    if m is None:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3))


def strip_v(tag: str) -> str:
    """Drop one leading ``v`` from a release tag (``v1.2.3`` → ``1.2.3``)."""
    tag = tag.strip()
    return tag[1:] if tag.startswith("v") else tag


def highest_semver(tags: list[str]) -> str:
    """Return the numerically highest semver tag (``v`` stripped), or ``""``.

    Ties keep the first occurrence.
    """
    best = ""
    best_key: tuple[int, int, int] | None = None
    for tag in tags:
        name = strip_v(tag)
        if not name:
            continue
        key = parse_semver(name)
        if key is None:
            continue
        if best_key is None or key > best_key:
            best, best_key = name, key
    return best
