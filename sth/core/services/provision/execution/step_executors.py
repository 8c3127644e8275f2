"""
L4 Execution — One executor per action type.

Every executor takes its typed action plus the operation context and
either returns normally or raises a ``ProvisionError``.  Executors
that mutate the filesystem are idempotent where the action allows it
(``mkdir``, ``chmod``, ``symlink``).

``ACTION_EXECUTORS`` maps every action ``type`` to its executor.
"""

from __future__ import annotations

import gzip
import hashlib
import logging
import os
import shutil
from pathlib import Path
from typing import Any, Callable

from sth.core.config.settings import DEFAULT_DIR_MODE
from sth.core.context import OperationContext
from sth.core.errors import ArchiveError, ChecksumMismatchError, ConfigError, FilesystemError
from sth.core.models.actions import (
    Action,
    ChmodAction,
    DownloadAction,
    ExtractAction,
    GunzipAction,
    MkdirAction,
    MoveAction,
    ShellAction,
    SymlinkAction,
    VerifyAction,
)
from sth.core.services.provision.execution.archive import extract_archive
from sth.core.services.provision.execution.download import PART_SUFFIX, download_file
from sth.core.services.provision.execution.shell_runner import run_shell

logger = logging.getLogger(__name__)


# ── Helpers ─────────────────────────────────────────────────────


def parse_mode(mode: str, default: int | None = None) -> int:
    """Parse an octal mode string (``"0755"``, ``"755"``, ``"0o755"``).

    Raises:
        ConfigError: If ``mode`` is empty without a default, or not octal.
    """
    text = mode.strip().lower().removeprefix("0o")
    if not text:
        if default is None:
            raise ConfigError("mode missing")
        return default
    try:
        return int(text, 8)
    except ValueError as e:
        raise ConfigError(f"invalid mode {mode!r}") from e


def sha256_file(path: str | Path) -> str:
    """Hex SHA-256 of a file, read in chunks."""
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            h.update(chunk)
    return h.hexdigest()


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)


def gunzip_file(src: str, dest: str) -> None:
    """Decompress a single-file gzip stream to ``dest`` atomically."""
    part = dest + PART_SUFFIX
    _ensure_parent(dest)
    try:
        with gzip.open(src, "rb") as zin, open(part, "wb") as out:
            shutil.copyfileobj(zin, out)
        os.replace(part, dest)
    except (gzip.BadGzipFile, EOFError) as e:
        Path(part).unlink(missing_ok=True)
        raise ArchiveError(f"{src}: not a valid gzip file: {e}") from e
    except BaseException:
        Path(part).unlink(missing_ok=True)
        raise


# ── Executors ───────────────────────────────────────────────────


def _execute_download(action: DownloadAction, ctx: OperationContext) -> None:
    download_file(action.url, action.dest, ctx)


def _execute_verify(action: VerifyAction, ctx: OperationContext) -> None:
    """Compare the file's SHA-256 to the expected digest (case-insensitive).

    A mismatch leaves the file where it is: it is never promoted.
    """
    expected = action.sha256.strip().lower()
    if not expected:
        raise ConfigError("verify: sha256 missing")
    try:
        actual = sha256_file(action.file)
    except OSError as e:
        raise FilesystemError(f"cannot read {action.file}: {e}") from e
    if actual != expected:
        raise ChecksumMismatchError(action.file, expected, actual)
    logger.debug("Checksum OK: %s", action.file)


def _execute_mkdir(action: MkdirAction, ctx: OperationContext) -> None:
    mode = parse_mode(action.mode, DEFAULT_DIR_MODE)
    try:
        os.makedirs(action.path, mode=mode, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"mkdir {action.path}: {e}") from e


def _execute_move(action: MoveAction, ctx: OperationContext) -> None:
    try:
        _ensure_parent(action.dest)
        shutil.move(action.src, action.dest)
    except OSError as e:
        raise FilesystemError(f"move {action.src} → {action.dest}: {e}") from e


def _execute_gunzip(action: GunzipAction, ctx: OperationContext) -> None:
    ctx.check()
    try:
        gunzip_file(action.src, action.dest)
    except OSError as e:
        raise FilesystemError(f"gunzip {action.src} → {action.dest}: {e}") from e


def _execute_extract(action: ExtractAction, ctx: OperationContext) -> None:
    extract_archive(action.src, action.dest, ctx)


def _execute_chmod(action: ChmodAction, ctx: OperationContext) -> None:
    if not action.mode.strip():
        return
    mode = parse_mode(action.mode)
    try:
        os.chmod(action.path, mode)
    except OSError as e:
        raise FilesystemError(f"chmod {action.path}: {e}") from e


def link_points_to(link: str, src: str) -> bool:
    """True if ``link`` is a symlink whose target is ``src``."""
    try:
        return os.path.islink(link) and os.readlink(link) == src
    except OSError:
        return False


def _execute_symlink(action: SymlinkAction, ctx: OperationContext) -> None:
    if link_points_to(action.dest, action.src):
        logger.debug("Symlink already in place: %s → %s", action.dest, action.src)
        return
    try:
        _ensure_parent(action.dest)
        if os.path.lexists(action.dest):
            os.remove(action.dest)
        os.symlink(action.src, action.dest)
    except OSError as e:
        raise FilesystemError(f"symlink {action.dest} → {action.src}: {e}") from e


def _execute_shell(action: ShellAction, ctx: OperationContext) -> None:
    run_shell(action.cmd, ctx, system=action.system)


ACTION_EXECUTORS: dict[str, Callable[[Any, OperationContext], None]] = {
    "download": _execute_download,
    "verify": _execute_verify,
    "mkdir": _execute_mkdir,
    "move": _execute_move,
    "gunzip": _execute_gunzip,
    "extract": _execute_extract,
    "chmod": _execute_chmod,
    "symlink": _execute_symlink,
    "shell": _execute_shell,
}


def execute_action(action: Action, ctx: OperationContext) -> None:
    """Dispatch ``action`` to its executor."""
    ctx.check()
    executor = ACTION_EXECUTORS[action.type]
    logger.debug("Executing %s", action.type)
    executor(action, ctx)
