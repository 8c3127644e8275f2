"""
L5 Orchestration — Single-recipe install.

Ties resolution and execution together:

    pending → resolving → resolved → executing → done
                  │                      │
                  └──────→ failed ←──────┘
    resolved → skipped   (already installed)

Nothing is persisted between runs.  "Already installed" is recomputed
from the filesystem every time: the bin symlink must point at the
resolved binary and that binary must be executable.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Literal

from sth.core.config.settings import ACTION_ICONS, INSTALL_TIMEOUT
from sth.core.context import ExecOptions, OperationContext
from sth.core.errors import ActionError, FilesystemError, OperationCancelled, ProvisionError
from sth.core.models.actions import Action, action_args
from sth.core.models.recipe import Recipe
from sth.core.models.resolved import PlatformInfo, ResolveResult
from sth.core.services.provision.detection.platform_info import get_platform_info
from sth.core.services.provision.execution.step_executors import execute_action, link_points_to
from sth.core.services.provision.resolver.recipe_resolution import resolve_recipe

logger = logging.getLogger(__name__)

InstallState = Literal["pending", "resolving", "resolved", "executing", "done", "failed", "skipped"]

Reporter = Callable[[str], None]


def _log_reporter(message: str) -> None:
    logger.info("%s", message)


@dataclass
class InstallReport:
    """Outcome of one recipe install."""

    recipe: str = ""
    version: str = ""
    state: InstallState = "pending"
    history: list[str] = field(default_factory=lambda: ["pending"])
    actions_run: list[str] = field(default_factory=list)
    dry_run: bool = False
    path_hint: str = ""
    error: str = ""

    def advance(self, state: InstallState) -> None:
        logger.debug("%s: %s → %s", self.recipe or "<recipe>", self.state, state)
        self.state = state
        self.history.append(state)

    def fail(self, error: BaseException) -> None:
        self.error = str(error)
        self.advance("failed")

    @property
    def status(self) -> str:
        if self.state == "skipped":
            return "already_installed"
        if self.state == "failed":
            return "failed"
        if self.state == "done":
            return "dry_run" if self.dry_run else "installed"
        return self.state

    @property
    def ok(self) -> bool:
        return self.state in ("done", "skipped")

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipe": self.recipe,
            "version": self.version,
            "status": self.status,
            "state": self.state,
            "history": list(self.history),
            "actions_run": list(self.actions_run),
            "dry_run": self.dry_run,
            "path_hint": self.path_hint,
            "error": self.error,
        }


# ── PATH guidance ───────────────────────────────────────────────


def path_on_env(directory: str, env_path: str | None = None) -> bool:
    """True if ``directory`` is an exact (cleaned) segment of ``PATH``."""
    if env_path is None:
        env_path = os.environ.get("PATH", "")
    wanted = os.path.normpath(directory)
    return any(os.path.normpath(p) == wanted for p in env_path.split(os.pathsep) if p)


def path_hint(bin_dir: str, env_path: str | None = None) -> str:
    """Shell line to put ``bin_dir`` on PATH, or ``""`` when already there."""
    if not bin_dir or path_on_env(bin_dir, env_path):
        return ""
    return f'export PATH="{bin_dir}:$PATH"'


def _report_path_hint(
    result: ResolveResult, report: InstallReport, reporter: Reporter, quiet: bool = False,
) -> None:
    """Record the PATH hint on the report; print it unless quiet."""
    report.path_hint = path_hint(result.paths.bin_dir)
    if report.path_hint and not quiet:
        reporter(f"⚠️  {result.paths.bin_dir} is not in your PATH. Add this to your shell profile:")
        reporter(f"    {report.path_hint}")


# ── Execution ───────────────────────────────────────────────────


def is_installed(result: ResolveResult) -> bool:
    """Idempotency gate: bin link → binary path, and the binary is executable."""
    if result.resolved is None:
        return False
    link = result.link_path
    binary = result.resolved.binary_path
    if not link or not link_points_to(link, binary):
        return False
    try:
        st = os.stat(binary)
    except OSError:
        return False
    return bool(st.st_mode & 0o111)


def _display_name(report: InstallReport) -> str:
    return f"{report.recipe} {report.version}".strip()


def describe_action(action: Action) -> str:
    args = " ".join(f"{k}={v}" for k, v in action_args(action).items() if v)
    return f"{action.type} {args}".rstrip()


def _ensure_dirs(result: ResolveResult) -> None:
    paths = result.paths
    for directory in (paths.cache_dir, paths.pkgs_dir, paths.bin_dir):
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as e:
            raise FilesystemError(f"mkdir {directory}: {e}") from e


def execute_resolved(
    result: ResolveResult,
    ctx: OperationContext,
    options: ExecOptions | None = None,
    reporter: Reporter | None = None,
    report: InstallReport | None = None,
) -> InstallReport:
    """Run a resolved plan.

    Raises:
        ActionError: An action failed; names its type and wraps the cause.
        FilesystemError: The root directories could not be created.
        OperationCancelled: The caller cancelled between or during actions.
    """
    options = options or ExecOptions()
    reporter = reporter or _log_reporter
    if report is None:
        report = InstallReport(recipe=result.recipe.name, state="resolved", history=["resolved"])
    report.dry_run = options.dry_run
    if result.resolved is not None:
        report.version = result.resolved.version

    if is_installed(result):
        report.advance("skipped")
        reporter(f"✅ {_display_name(report)} already installed")
        _report_path_hint(result, report, reporter, options.quiet)
        return report

    report.advance("executing")
    if not options.dry_run:
        _ensure_dirs(result)

    total = len(result.actions)
    for i, action in enumerate(result.actions, 1):
        icon = ACTION_ICONS.get(action.type, "•")
        label = describe_action(action) if options.verbose else action.type
        if options.dry_run:
            reporter(f"{icon} [{i}/{total}] (dry-run) {describe_action(action)}")
            report.actions_run.append(action.type)
            continue

        if not options.quiet:
            reporter(f"{icon} [{i}/{total}] {label}")
        try:
            execute_action(action, ctx)
        except OperationCancelled:
            raise
        except ProvisionError as e:
            raise ActionError(action.type, e) from e
        report.actions_run.append(action.type)

    report.advance("done")
    if not options.dry_run:
        reporter(f"✅ {_display_name(report)} installed")
    _report_path_hint(result, report, reporter, options.quiet)
    return report


def install_recipe(
    recipe: Recipe,
    platform: PlatformInfo | None = None,
    ctx: OperationContext | None = None,
    options: ExecOptions | None = None,
    reporter: Reporter | None = None,
    report: InstallReport | None = None,
) -> InstallReport:
    """Resolve and install one recipe under a 60-minute deadline.

    ``report`` (when given) is updated in place, so callers can
    inspect the failed state after an exception.

    Raises:
        ProvisionError: Resolution or execution failed.
    """
    ctx = (ctx or OperationContext.background()).with_timeout(INSTALL_TIMEOUT)
    platform = platform or get_platform_info()
    report = report or InstallReport()
    report.recipe = recipe.name

    report.advance("resolving")
    try:
        result = resolve_recipe(recipe, platform, ctx)
    except ProvisionError as e:
        report.fail(e)
        raise
    report.advance("resolved")

    try:
        return execute_resolved(result, ctx, options, reporter, report)
    except ProvisionError as e:
        report.fail(e)
        raise
