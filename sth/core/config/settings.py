"""
L0 Data — Named constants and environment lookups.

Pure data. No logic beyond reading environment variables.
"""

from __future__ import annotations

import os

# ── Identity ────────────────────────────────────────────────────

USER_AGENT = "sth/1.0"
DOWNLOAD_USER_AGENT = "sth-installer/1.0"
GITHUB_API = "https://api.github.com"

# ── Timeouts (seconds) ──────────────────────────────────────────

HTTP_TIMEOUT = 10
GITHUB_TIMEOUT = 15
DOWNLOAD_TIMEOUT = 60
INSTALL_TIMEOUT = 60 * 60       # whole install (single recipe or batch)
PREFETCH_TIMEOUT = 30 * 60      # batch artifact pre-fetch
SHELL_POLL_INTERVAL = 0.2

# ── Layout ──────────────────────────────────────────────────────

USER_ROOT_SUFFIX = (".local", "sth")
SYSTEM_ROOT = "/usr/local/sth"
DEFAULT_DIR_MODE = 0o755
GITHUB_PAGE_SIZE = 100

# ── Recipe catalog ──────────────────────────────────────────────

DEFAULT_RECIPES_BASE = "https://raw.githubusercontent.com/aottr/sthpkgs/refs/heads/main/"
INDEX_FILENAME = "index.yaml"
INDEX_CACHE_TTL = 12 * 60 * 60
DEFAULT_CACHE_FILE = ".sth.cache"

# ── Progress icons ──────────────────────────────────────────────

ACTION_ICONS: dict[str, str] = {
    "download": "⬇️",
    "verify": "✅",
    "mkdir": "📁",
    "move": "➡️",
    "gunzip": "📦",
    "extract": "📦",
    "chmod": "🔑",
    "symlink": "🔗",
    "shell": "🐚",
}


def github_token() -> str:
    """Bearer token for the GitHub API (empty when unset)."""
    return os.environ.get("GITHUB_TOKEN", "").strip()


def recipes_base() -> str:
    base = os.environ.get("STH_RECIPES_BASE", "").strip() or DEFAULT_RECIPES_BASE
    return base if base.endswith("/") else base + "/"


def cache_file() -> str:
    return os.environ.get("STH_CACHE_FILE", "").strip() or DEFAULT_CACHE_FILE
