"""
L1 Domain — JSONPath-like selection (pure).

Supports the small subset recipes need to pick a version out of a
JSON document::

    $.tag_name
    $[0].name
    $.releases[2].version
    $["dist-tags"].latest
    data.version              (leading "$" optional)

No wildcards, filters or slices.  No I/O.
"""

from __future__ import annotations

import re
from typing import Any

from sth.core.errors import ConfigError, FormatError

_STEP_RE = re.compile(
    r"""
      \.(?P<key>[^.\[\]]+)
    | \[(?P<index>-?\d+)\]
    | \[(?P<q>["'])(?P<qkey>.*?)(?P=q)\]
    """,
    re.VERBOSE,
)


def parse_selector(selector: str) -> list[str | int]:
    """Split a selector into dict keys (str) and list indexes (int).

    Raises:
        ConfigError: If the selector is empty or malformed.
    """
    s = selector.strip()
    if s.startswith("$"):
        s = s[1:]
    elif s and s[0] not in ".[":
        s = "." + s
    if not s:
        raise ConfigError(f"invalid selector {selector!r}: selects nothing")

    steps: list[str | int] = []
    pos = 0
    while pos < len(s):
        m = _STEP_RE.match(s, pos)
        if m is None:
            raise ConfigError(f"invalid selector {selector!r} at {s[pos:]!r}")
        if m.group("key") is not None:
            steps.append(m.group("key"))
        elif m.group("index") is not None:
            steps.append(int(m.group("index")))
        else:
            steps.append(m.group("qkey"))
        pos = m.end()
    return steps


def select(document: Any, selector: str) -> Any:
    """Walk ``document`` along ``selector``.

    Raises:
        ConfigError: Malformed selector.
        FormatError: The document does not contain the selected path.
    """
    current = document
    for step in parse_selector(selector):
        if isinstance(step, int):
            if not isinstance(current, list) or not -len(current) <= step < len(current):
                raise FormatError(f"selector {selector!r}: no index {step}")
            current = current[step]
        else:
            if not isinstance(current, dict) or step not in current:
                raise FormatError(f"selector {selector!r}: no key {step!r}")
            current = current[step]
    return current
