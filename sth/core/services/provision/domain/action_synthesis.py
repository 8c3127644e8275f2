"""
L1 Domain — Default action synthesis (pure).

When a recipe declares no ``actions``, the install sequence is derived
from the artifact format:

    download → [verify] → mkdir → unpack → [chmod] → symlink

``verify`` appears only when a checksum was resolved and ``chmod``
only when a mode was given.  No I/O.
"""

from __future__ import annotations

import os

from sth.core.models.actions import (
    Action,
    ChmodAction,
    DownloadAction,
    ExtractAction,
    GunzipAction,
    MkdirAction,
    MoveAction,
    SymlinkAction,
    VerifyAction,
)
from sth.core.models.recipe import Paths
from sth.core.models.resolved import ArtifactResolved


def _unpack_action(a: ArtifactResolved) -> Action:
    fmt = a.format.strip().lower()
    if fmt == "gz":
        return GunzipAction(src=a.cache_file, dest=a.binary_path)
    if fmt in ("tar.gz", "tgz", "zip"):
        return ExtractAction(src=a.cache_file, dest=a.install_dir)
    # raw (or unset): the download IS the binary
    return MoveAction(src=a.cache_file, dest=a.binary_path)


def default_actions(a: ArtifactResolved, paths: Paths) -> list[Action]:
    """Build the canonical install sequence for a resolved artifact."""
    actions: list[Action] = [DownloadAction(url=a.url, dest=a.cache_file)]

    if a.sha256.strip():
        actions.append(VerifyAction(file=a.cache_file, sha256=a.sha256))

    actions.append(MkdirAction(path=a.install_dir, mode="0755"))
    actions.append(_unpack_action(a))

    if a.mode.strip():
        actions.append(ChmodAction(path=a.binary_path, mode=a.mode))

    actions.append(SymlinkAction(src=a.binary_path, dest=os.path.join(paths.bin_dir, a.bin_name)))
    return actions
