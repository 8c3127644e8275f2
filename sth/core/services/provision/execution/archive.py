"""
L4 Execution — Archive extraction with traversal defense.

Supports tar.gz and zip.  Every entry name is cleaned and any entry
that would land outside the destination is skipped (and logged);
well-formed entries in the same archive are still extracted.

Containment is checked on the real filesystem, not just on names: an
entry whose parent directory resolves (through links the archive has
already created) outside the destination is skipped.  Symlink entries
get the same check applied to their TARGET: absolute targets and
targets resolving outside the destination are skipped.

Existing files and links at an entry's path are replaced, so
extracting the same archive twice is harmless.  Entry modes are
applied (permission bits only, no setuid/setgid).
"""

from __future__ import annotations

import gzip
import logging
import os
import posixpath
import shutil
import stat
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from sth.core.context import OperationContext
from sth.core.errors import ArchiveError, FilesystemError

logger = logging.getLogger(__name__)

_TAR_ERRORS = (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile)
_ZIP_ERRORS = (zipfile.BadZipFile, zipfile.LargeZipFile, EOFError, zlib.error, NotImplementedError)

_PERM_MASK = 0o777
_DEFAULT_FILE_MODE = 0o644


# ── Path safety ─────────────────────────────────────────────────


def clean_entry_name(name: str) -> str | None:
    """Normalize an archive entry name relative to the extraction root.

    Leading slashes are dropped.  Returns ``None`` for entries that
    name the root itself or escape it (``..`` as first component).
    """
    cleaned = posixpath.normpath(name.replace("\\", "/").lstrip("/"))
    if cleaned in ("", "."):
        return None
    if cleaned == ".." or cleaned.startswith("../"):
        return None
    return cleaned


def safe_link_target(entry: str, link_target: str) -> bool:
    """True if a symlink at ``entry`` pointing to ``link_target`` stays inside the root.

    Lexical only; ``_Extraction`` repeats the check against the disk.
    """
    if not link_target or posixpath.isabs(link_target):
        return False
    resolved = posixpath.normpath(posixpath.join(posixpath.dirname(entry), link_target))
    return not (resolved == ".." or resolved.startswith("../"))


def is_within(path: str, root: str) -> bool:
    """True if real path ``path`` is ``root`` or below it."""
    return path == root or path.startswith(root.rstrip(os.sep) + os.sep)


# ── Filesystem writes ───────────────────────────────────────────


def _clear(path: Path) -> None:
    """Remove a file or link occupying ``path`` (directories are kept)."""
    if path.is_symlink() or path.is_file():
        path.unlink()


def _write_file(path: Path, data: BinaryIO, mode: int) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _clear(path)
        with open(path, "wb") as out:
            shutil.copyfileobj(data, out)
        os.chmod(path, mode & _PERM_MASK)
    except OSError as e:
        raise FilesystemError(f"extract {path}: {e}") from e


def _write_dir(path: Path) -> None:
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"extract {path}: {e}") from e


def _write_symlink(path: Path, link_target: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        _clear(path)
        os.symlink(link_target, path)
    except OSError as e:
        raise FilesystemError(f"extract {path}: {e}") from e


def _apply_dir_modes(dir_modes: list[tuple[Path, int]]) -> None:
    # Deepest first, so read-only parents do not block their children
    for path, mode in sorted(dir_modes, key=lambda item: len(item[0].parts), reverse=True):
        try:
            os.chmod(path, mode & _PERM_MASK)
        except OSError as e:
            raise FilesystemError(f"chmod {path}: {e}") from e


class _Extraction:
    """Shared bookkeeping for one archive."""

    def __init__(self, src: str, dest: str, ctx: OperationContext | None) -> None:
        self.src = src
        self.root = Path(dest)
        self.ctx = ctx
        self.real_root = os.path.realpath(dest)
        self.count = 0
        self.dir_modes: list[tuple[Path, int]] = []

    def target(self, name: str) -> tuple[str, Path] | None:
        if self.ctx is not None:
            self.ctx.check()
        cleaned = clean_entry_name(name)
        if cleaned is None:
            logger.warning("Skipping unsafe archive entry %r in %s", name, self.src)
            return None
        path = self.root / cleaned
        # earlier symlink entries may redirect the parent chain
        if not is_within(os.path.realpath(path.parent), self.real_root):
            logger.warning("Skipping archive entry %r in %s: parent resolves outside extraction root", name, self.src)
            return None
        return cleaned, path

    def directory(self, path: Path, mode: int) -> None:
        _write_dir(path)
        if mode:
            self.dir_modes.append((path, mode))
        self.count += 1

    def file(self, path: Path, data: BinaryIO, mode: int) -> None:
        _write_file(path, data, mode or _DEFAULT_FILE_MODE)
        self.count += 1

    def symlink(self, entry: str, path: Path, link_target: str) -> None:
        real_target = os.path.realpath(os.path.join(os.path.realpath(path.parent), link_target))
        if not safe_link_target(entry, link_target) or not is_within(real_target, self.real_root):
            logger.warning(
                "Skipping symlink %r → %r in %s: target escapes extraction root",
                entry, link_target, self.src,
            )
            return
        _write_symlink(path, link_target)
        self.count += 1

    def finish(self) -> int:
        _apply_dir_modes(self.dir_modes)
        return self.count


# ── Formats ─────────────────────────────────────────────────────


def extract_tar_gz(src: str, dest: str, ctx: OperationContext | None = None) -> int:
    """Extract a gzip-compressed tarball into ``dest``.

    Returns:
        Number of entries written.

    Raises:
        ArchiveError: Not a gzip tarball, or corrupt.
        FilesystemError: An entry could not be written.
    """
    job = _Extraction(src, dest, ctx)
    _write_dir(job.root)
    try:
        with tarfile.open(src, "r:gz") as tar:
            for member in tar:
                found = job.target(member.name)
                if found is None:
                    continue
                entry, path = found
                if member.isdir():
                    job.directory(path, member.mode)
                elif member.isreg():
                    data = tar.extractfile(member)
                    if data is None:
                        raise ArchiveError(f"{src}: cannot read {member.name}")
                    with data:
                        job.file(path, data, member.mode)
                elif member.issym():
                    job.symlink(entry, path, member.linkname)
                else:
                    logger.debug("Skipping unsupported tar entry %s (type %r)", member.name, member.type)
    except _TAR_ERRORS as e:
        raise ArchiveError(f"{src}: not a valid tar.gz archive: {e}") from e
    except OSError as e:
        raise ArchiveError(f"{src}: cannot read archive: {e}") from e
    return job.finish()


def _zip_link_target(zf: zipfile.ZipFile, info: zipfile.ZipInfo, src: str) -> str:
    try:
        return zf.read(info).decode("utf-8")
    except UnicodeDecodeError as e:
        raise ArchiveError(f"{src}: symlink {info.filename} has a non-UTF-8 target: {e}") from e


def extract_zip(src: str, dest: str, ctx: OperationContext | None = None) -> int:
    """Extract a zip archive into ``dest``.

    Unix modes (and symlinks) come from the entry's external attributes.

    Raises:
        ArchiveError: Not a zip file, or corrupt.
        FilesystemError: An entry could not be written.
    """
    job = _Extraction(src, dest, ctx)
    _write_dir(job.root)
    try:
        with zipfile.ZipFile(src) as zf:
            for info in zf.infolist():
                found = job.target(info.filename)
                if found is None:
                    continue
                entry, path = found
                unix_mode = info.external_attr >> 16
                if stat.S_ISLNK(unix_mode):
                    job.symlink(entry, path, _zip_link_target(zf, info, src))
                elif info.is_dir():
                    job.directory(path, unix_mode)
                else:
                    with zf.open(info) as data:
                        job.file(path, data, unix_mode)
    except _ZIP_ERRORS as e:
        raise ArchiveError(f"{src}: not a valid zip archive: {e}") from e
    except OSError as e:
        raise ArchiveError(f"{src}: cannot read archive: {e}") from e
    return job.finish()


def extract_archive(src: str, dest: str, ctx: OperationContext | None = None) -> int:
    """Extract ``src`` into ``dest``, choosing the reader by suffix.

    ``.tar.gz`` / ``.tgz`` → tar, ``.zip`` → zip.  Any other name is
    tried as tar.gz first, then zip.

    Raises:
        ArchiveError: Unsupported or corrupt archive.
    """
    name = src.lower()
    if name.endswith((".tar.gz", ".tgz")):
        count = extract_tar_gz(src, dest, ctx)
    elif name.endswith(".zip"):
        count = extract_zip(src, dest, ctx)
    else:
        try:
            count = extract_tar_gz(src, dest, ctx)
        except ArchiveError as tar_err:
            logger.debug("%s is not a tar.gz (%s), trying zip", src, tar_err)
            try:
                count = extract_zip(src, dest, ctx)
            except ArchiveError as zip_err:
                raise ArchiveError(
                    f"unsupported archive {src}: tar.gz: {tar_err}; zip: {zip_err}"
                ) from zip_err

    logger.info("Extracted %d entries from %s into %s", count, src, dest)
    return count
