"""
L2 Resolver — Version discovery.

Dispatches on ``VersionSource.type``:

    static         → ``value``, else ``fallback``
    githubRelease  → latest release (or first compatible in the listing)
    githubTag      → highest ``major.minor.patch`` tag
    regex          → scrape a page, named group ``version`` preferred
    httpJson       → fetch JSON, pick ``selector``

Each strategy raises on failure; ``resolve_version`` applies the
recipe's ``fallback`` when one is configured.  Cancellation is never
turned into a fallback.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from sth.core.config.settings import GITHUB_PAGE_SIZE
from sth.core.context import OperationContext
from sth.core.errors import ConfigError, FormatError, NetworkError
from sth.core.models.recipe import VersionSource
from sth.core.services.provision.domain.json_selector import select
from sth.core.services.provision.domain.semver import highest_semver, strip_v
from sth.core.services.provision.resolver.http_fetch import fetch_json, fetch_text, github_api

logger = logging.getLogger(__name__)

# Errors a strategy may recover from via ``fallback``
_RECOVERABLE = (ConfigError, NetworkError, FormatError)

# (?<name>...) is common in recipes written for other regex engines
_NAMED_GROUP_RE = re.compile(r"\(\?<(?![=!])")


def _require_repo(vs: VersionSource) -> str:
    repo = vs.repo.strip()
    if not repo:
        raise ConfigError(f"{vs.type}: repo missing")
    return repo


# ── Strategies ──────────────────────────────────────────────────


def _github_release(vs: VersionSource, ctx: OperationContext) -> str:
    """Latest release tag, ``v`` stripped.

    Without ``prerelease`` and ``constraint`` this is GitHub's
    ``/releases/latest``.  Otherwise the first 100 releases are scanned
    in listing order (newest first, as GitHub returns them) and the
    first one whose prerelease flag is acceptable wins.
    """
    repo = _require_repo(vs)

    if not vs.prerelease and not vs.constraint.strip():
        release = github_api(f"/repos/{repo}/releases/latest", ctx)
        if not isinstance(release, dict):
            raise FormatError("githubRelease: unexpected response shape")
        tag = strip_v(str(release.get("tag_name") or ""))
        if not tag:
            raise FormatError("githubRelease: latest release has no tag")
        return tag

    releases = github_api(f"/repos/{repo}/releases?per_page={GITHUB_PAGE_SIZE}", ctx)
    if not isinstance(releases, list):
        raise FormatError("githubRelease: unexpected response shape")
    for rel in releases:
        if not isinstance(rel, dict):
            continue
        if rel.get("prerelease") and not vs.prerelease:
            continue
        tag = strip_v(str(rel.get("tag_name") or ""))
        if tag:
            return tag
    raise FormatError("githubRelease: no matching releases")


def _github_tag(vs: VersionSource, ctx: OperationContext) -> str:
    """Numerically highest semver tag; else the first tag verbatim."""
    repo = _require_repo(vs)
    tags = github_api(f"/repos/{repo}/tags?per_page={GITHUB_PAGE_SIZE}", ctx)
    if not isinstance(tags, list):
        raise FormatError("githubTag: unexpected response shape")

    names = [str(t.get("name") or "").strip() for t in tags if isinstance(t, dict)]
    best = highest_semver(names)
    if best:
        return best
    for name in names:
        if name:
            logger.debug("githubTag: no semver tag in %s, using first tag %s", repo, name)
            return strip_v(name)
    raise FormatError("githubTag: no tags found")


def compile_pattern(pattern: str) -> re.Pattern[str]:
    """Compile a scrape pattern, accepting ``(?<name>...)`` groups.

    Raises:
        ConfigError: If the pattern does not compile.
    """
    try:
        return re.compile(_NAMED_GROUP_RE.sub("(?P<", pattern))
    except re.error as e:
        raise ConfigError(f"regex: invalid pattern: {e}") from e


def match_version(rx: re.Pattern[str], body: str) -> str:
    """Named group ``version``, else the first group, else the whole match."""
    m = rx.search(body)
    if m is None:
        raise FormatError("regex: no match")
    if "version" in rx.groupindex:
        value = (m.group("version") or "").strip()
        if value:
            return value
    if rx.groups >= 1:
        return (m.group(1) or "").strip()
    return m.group(0).strip()


def _regex(vs: VersionSource, ctx: OperationContext) -> str:
    if not vs.url.strip() or not vs.pattern.strip():
        raise ConfigError("regex: url or pattern missing")
    rx = compile_pattern(vs.pattern)
    return match_version(rx, fetch_text(vs.url, ctx))


def _http_json(vs: VersionSource, ctx: OperationContext) -> str:
    """Fetch ``url`` and select a scalar with ``selector`` (``v`` stripped)."""
    if not vs.url.strip() or not vs.selector.strip():
        raise ConfigError("httpJson: url or selector missing")
    value = select(fetch_json(vs.url, ctx), vs.selector)
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise FormatError(f"httpJson: selector {vs.selector!r} is not a scalar")
    version = strip_v(str(value))
    if not version:
        raise FormatError(f"httpJson: selector {vs.selector!r} is empty")
    return version


VERSION_STRATEGIES: dict[str, Callable[[VersionSource, OperationContext], str]] = {
    "githubRelease": _github_release,
    "githubTag": _github_tag,
    "regex": _regex,
    "httpJson": _http_json,
}


def resolve_version(vs: VersionSource, ctx: OperationContext) -> str:
    """Discover the artifact version.

    Raises:
        ConfigError: Static source without value/fallback, or an
            unsupported type without fallback.
        NetworkError / FormatError: Strategy failure without fallback.
        OperationCancelled: The caller cancelled; never masked.
    """
    if vs.type == "static":
        if vs.value:
            return vs.value
        if vs.fallback:
            return vs.fallback
        raise ConfigError("static version empty")

    strategy = VERSION_STRATEGIES.get(vs.type)
    if strategy is None:
        if vs.fallback:
            logger.warning("Unsupported version source %r, using fallback %s", vs.type, vs.fallback)
            return vs.fallback
        raise ConfigError(f"unsupported version source: {vs.type!r}")

    try:
        version = strategy(vs, ctx)
    except _RECOVERABLE as e:
        if vs.fallback:
            logger.warning("%s version lookup failed (%s), using fallback %s", vs.type, e, vs.fallback)
            return vs.fallback
        raise

    logger.info("Resolved %s version: %s", vs.type, version)
    return version
