"""
Cache persistence — freshness-checked JSON snapshots.

Used to avoid re-fetching the remote recipe index on every run.
Writes are atomic (write to temp file, then rename) so a crash
mid-write never leaves a truncated cache behind.
"""

from __future__ import annotations

import json
import logging
import tempfile
import time
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def is_fresh(path: Path, ttl: float) -> bool:
    """True if ``path`` exists and was modified less than ``ttl`` seconds ago."""
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return False
    return (time.time() - mtime) < ttl


def load_cache(path: Path) -> Any:
    """Load a cached JSON value.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not valid JSON.
    """
    raw = path.read_text(encoding="utf-8")
    return json.loads(raw)


def save_cache(path: Path, value: Any) -> None:
    """Save a JSON-serializable value (atomic write).

    Pydantic models are dumped in JSON mode first.
    """
    if hasattr(value, "model_dump"):
        value = value.model_dump(mode="json")

    path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(value, indent=2, ensure_ascii=False) + "\n"

    _fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=".cache_", suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with open(_fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
        logger.debug("Cache saved to %s", path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise
