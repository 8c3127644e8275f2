"""
L1 Domain — Path/scope resolution.

Computes the root/bin/pkgs/cache/manifests directories for a
recipe.  An explicit ``rootDir`` wins over the scope default; every
other role falls back to ``<root>/<role>`` when not overridden.
"""

from __future__ import annotations

import os
from pathlib import Path

from sth.core.config.settings import SYSTEM_ROOT, USER_ROOT_SUFFIX
from sth.core.models.recipe import Paths


def _home() -> str:
    return os.environ.get("HOME") or str(Path.home())


def default_root(scope: str) -> str:
    """Scope-derived root: ``~/.local/sth`` for user, ``/usr/local/sth`` otherwise."""
    if scope in ("", "user"):
        return os.path.join(_home(), *USER_ROOT_SUFFIX)
    return SYSTEM_ROOT


def _expand(value: str) -> str:
    return os.path.expanduser(value) if value else ""


def resolve_paths(scope: str, override: Paths | None = None) -> Paths:
    """Resolve all five directory roles for ``scope``.

    Args:
        scope: ``"user"`` (default) or ``"system"``.
        override: Per-recipe overrides; empty fields use defaults.
    """
    override = override or Paths()
    root = _expand(override.root_dir) or default_root(scope)
    return Paths(
        root_dir=root,
        bin_dir=_expand(override.bin_dir) or os.path.join(root, "bin"),
        pkgs_dir=_expand(override.pkgs_dir) or os.path.join(root, "pkgs"),
        cache_dir=_expand(override.cache_dir) or os.path.join(root, "cache"),
        manifests=_expand(override.manifests) or os.path.join(root, "manifests"),
    )
