"""
L5 Orchestration — Multi-recipe installs.

``install_all`` runs recipes one after another under a single outer
deadline.  ``prefetch_artifacts`` warms the download cache for many
resolved recipes in parallel with a fixed-size worker pool; it is
best effort: a failed download is recorded and the pool keeps going.
"""

from __future__ import annotations

import concurrent.futures
import logging
import os
from dataclasses import dataclass

from sth.core.config.settings import INSTALL_TIMEOUT, PREFETCH_TIMEOUT
from sth.core.context import ExecOptions, OperationContext
from sth.core.errors import OperationCancelled, ProvisionError
from sth.core.models.recipe import Recipe
from sth.core.models.resolved import PlatformInfo, ResolveResult
from sth.core.services.provision.detection.platform_info import get_platform_info
from sth.core.services.provision.execution.download import download_file
from sth.core.services.provision.orchestration.orchestrator import (
    InstallReport,
    Reporter,
    install_recipe,
)

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4


def install_all(
    recipes: list[Recipe],
    platform: PlatformInfo | None = None,
    ctx: OperationContext | None = None,
    options: ExecOptions | None = None,
    reporter: Reporter | None = None,
) -> list[InstallReport]:
    """Install ``recipes`` in order, collecting one report per recipe.

    A failing recipe does not stop the batch.  Cancellation (or the
    60-minute deadline) does: recipes not yet attempted get no report.
    """
    ctx = (ctx or OperationContext.background()).with_timeout(INSTALL_TIMEOUT)
    platform = platform or get_platform_info()

    reports: list[InstallReport] = []
    for recipe in recipes:
        report = InstallReport(recipe=recipe.name)
        reports.append(report)
        try:
            install_recipe(recipe, platform, ctx, options, reporter, report)
        except OperationCancelled as e:
            logger.warning("Batch install stopped at '%s': %s", recipe.name, e)
            break
        except ProvisionError as e:
            logger.error("Install of '%s' failed: %s", recipe.name, e)

    failed = sum(1 for r in reports if not r.ok)
    logger.info("Batch install: %d recipes, %d failed", len(reports), failed)
    return reports


@dataclass
class PrefetchError:
    """One failed cache download."""

    recipe: str
    url: str
    error: str


def _prefetch_one(result: ResolveResult, ctx: OperationContext) -> bool:
    """Download one artifact into the cache; False if already cached."""
    resolved = result.resolved
    if resolved is None or os.path.exists(resolved.cache_file):
        return False
    download_file(resolved.url, resolved.cache_file, ctx)
    return True


def prefetch_artifacts(
    results: list[ResolveResult],
    ctx: OperationContext | None = None,
    workers: int = DEFAULT_WORKERS,
) -> list[PrefetchError]:
    """Download the artifacts of ``results`` in parallel.

    The pool size is ``min(workers, cpu_count)``.  Every job runs
    under one 30-minute deadline shared through ``ctx``; the pool is
    fully drained before this returns.

    Returns:
        The failures, one per artifact that could not be fetched.
    """
    jobs = [r for r in results if r.resolved is not None]
    if not jobs:
        return []

    ctx = (ctx or OperationContext.background()).with_timeout(PREFETCH_TIMEOUT)
    pool_size = max(1, min(workers, os.cpu_count() or 1))
    errors: list[PrefetchError] = []

    with concurrent.futures.ThreadPoolExecutor(max_workers=pool_size) as pool:
        futures = {pool.submit(_prefetch_one, r, ctx): r for r in jobs}
        for future in concurrent.futures.as_completed(futures):
            result = futures[future]
            try:
                fetched = future.result()
            except ProvisionError as e:
                logger.warning("Prefetch of '%s' failed: %s", result.recipe.name, e)
                errors.append(PrefetchError(result.recipe.name, result.resolved.url, str(e)))
            else:
                logger.debug("Prefetch of '%s': %s", result.recipe.name, "fetched" if fetched else "cached")

    logger.info("Prefetched %d artifacts with %d workers, %d failed", len(jobs), pool_size, len(errors))
    return errors
