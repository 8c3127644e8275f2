"""
L4 Execution — Artifact download.

Streams a URL to ``<dest>.part`` and renames it into place only once
the transfer completed.  Any failure (HTTP, disk, cancellation)
removes the partial file, so ``dest`` is either absent or complete.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sth.core.config.settings import DOWNLOAD_TIMEOUT, DOWNLOAD_USER_AGENT
from sth.core.context import OperationContext
from sth.core.errors import FilesystemError
from sth.core.services.provision.resolver.http_fetch import copy_body, open_url

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


def _fmt_size(n: int) -> str:
    """Human-readable byte size."""
    size = float(n)
    for unit in ("B", "KB", "MB", "GB"):
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


class _Progress:
    """Logs download progress every 10%."""

    def __init__(self, url: str, total: int) -> None:
        self.url = url
        self.total = total
        self.last = 0

    def __call__(self, downloaded: int) -> None:
        if self.total <= 0:
            return
        pct = int(downloaded * 100 / self.total)
        if pct >= self.last + 10:
            self.last = pct - pct % 10
            logger.info(
                "Download progress: %d%% (%s / %s)",
                pct, _fmt_size(downloaded), _fmt_size(self.total),
            )


def download_file(
    url: str,
    dest: str | Path,
    ctx: OperationContext,
    *,
    timeout: float = DOWNLOAD_TIMEOUT,
) -> int:
    """Download ``url`` to ``dest`` atomically.

    Returns:
        Number of bytes written.

    Raises:
        NetworkError: Transport failure, non-2xx status, or timeout.
        FilesystemError: The destination cannot be written.
        OperationCancelled: The caller cancelled mid-transfer.
    """
    dest = Path(dest)
    part = dest.with_name(dest.name + PART_SUFFIX)

    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        out = open(part, "wb")
    except OSError as e:
        raise FilesystemError(f"cannot write {part}: {e}") from e

    try:
        with out, open_url(url, ctx, timeout=timeout, user_agent=DOWNLOAD_USER_AGENT) as (resp, check):
            total = int(resp.headers.get("Content-Length") or 0)
            written = copy_body(resp, out, check, _Progress(url, total))
        try:
            os.replace(part, dest)
        except OSError as e:
            raise FilesystemError(f"cannot move {part} into place: {e}") from e
    except BaseException:
        part.unlink(missing_ok=True)
        raise

    logger.info("Downloaded %s → %s (%s)", url, dest, _fmt_size(written))
    return written
