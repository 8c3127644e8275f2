"""
L1 Domain — Target platform matching (pure).

Merges the recipe's declared target with the detected platform and
validates the platform against the recipe's OS/arch allow-lists.
"""

from __future__ import annotations

from sth.core.errors import UnsupportedTargetError
from sth.core.models.recipe import Target
from sth.core.models.resolved import PlatformInfo


def contains_fold(values: list[str], wanted: str) -> bool:
    """Case-insensitive, whitespace-tolerant membership test."""
    wanted = wanted.strip().lower()
    return any(v.strip().lower() == wanted for v in values)


def effective_target(declared: Target, platform: PlatformInfo) -> Target:
    """Recipe values win when non-empty; distro/family fill from the platform."""
    return Target(
        os=list(declared.os),
        arch=list(declared.arch),
        distro=declared.distro or platform.distro,
        family=declared.family or platform.family,
    )


def ensure_target_supported(target: Target, platform: PlatformInfo) -> None:
    """Reject platforms outside non-empty allow-lists.

    Raises:
        UnsupportedTargetError: Naming the detected value and the allowed set.
    """
    if target.os and not contains_fold(target.os, platform.os):
        raise UnsupportedTargetError("OS", platform.os, target.os)
    if target.arch and not contains_fold(target.arch, platform.arch):
        raise UnsupportedTargetError("Arch", platform.arch, target.arch)
