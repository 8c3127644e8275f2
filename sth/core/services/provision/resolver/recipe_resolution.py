"""
L2 Resolver — Recipe → ResolveResult.

The central coordinator.  In order:

    1. merge declared target with the detected platform
    2. reject unsupported OS / arch
    3. resolve directory roles from scope + overrides
    4. pure shell recipes: pass declared actions through, done
    5. discover version, render URL / checksum / inner path
    6. compute layout (cache file, install dir, binary path)
    7. synthesize default actions, or render the declared ones

The result's actions contain no unrendered template tokens.
"""

from __future__ import annotations

import logging
import os

from sth.core.context import OperationContext
from sth.core.errors import ConfigError, TemplateError
from sth.core.models.actions import Action, build_action, render_action
from sth.core.models.recipe import ARCHIVE_FORMATS, Artifact, Paths, Recipe
from sth.core.models.resolved import ArtifactResolved, PlatformInfo, ResolveResult
from sth.core.services.provision.domain.action_synthesis import default_actions
from sth.core.services.provision.domain.paths import resolve_paths
from sth.core.services.provision.domain.target import effective_target, ensure_target_supported
from sth.core.services.provision.domain.template import render
from sth.core.services.provision.resolver.checksum_resolution import resolve_checksum
from sth.core.services.provision.resolver.version_resolution import resolve_version

logger = logging.getLogger(__name__)


def template_context(name: str, version: str, platform: PlatformInfo) -> dict[str, str]:
    """Base context for URL, checksum and inner-path templates."""
    return {
        "Name": name,
        "Version": version,
        "OS": platform.os,
        "Arch": platform.arch,
        "Distro": platform.distro,
        "Family": platform.family,
    }


def _render_field(label: str, template: str, context: dict[str, str]) -> str:
    try:
        return render(template, context)
    except TemplateError as e:
        raise TemplateError(f"render {label}: {e}") from e


def _binary_path(install_dir: str, fmt: str, bin_name: str, inner_path: str) -> str:
    """Explicit bin name for raw, else the inner path, else bin name at archive root."""
    if fmt in ("", "raw") and bin_name:
        return os.path.join(install_dir, bin_name)
    if inner_path:
        return os.path.join(install_dir, inner_path)
    return os.path.join(install_dir, bin_name)


def resolve_artifact(
    artifact: Artifact,
    recipe_name: str,
    platform: PlatformInfo,
    paths: Paths,
    ctx: OperationContext,
) -> tuple[ArtifactResolved, dict[str, str]]:
    """Discover the version and render the artifact's templates.

    Returns:
        ``(resolved, context)`` where ``context`` is the template
        context used, for rendering declared actions.
    """
    fmt = artifact.normalized_format
    if fmt not in ARCHIVE_FORMATS:
        raise ConfigError(f"unsupported artifact format: {artifact.format!r}")
    if not artifact.url_template.strip():
        raise ConfigError("artifact urlTemplate missing")

    name = artifact.name.strip() or recipe_name
    bin_name = artifact.bin_name.strip() or name

    version = resolve_version(artifact.version, ctx)
    if not version:
        raise ConfigError("version resolved empty")

    context = template_context(name, version, platform)
    url = _render_field("urlTemplate", artifact.url_template, context)
    if not url:
        raise ConfigError("urlTemplate rendered empty")

    sha256 = ""
    if artifact.sha256_template.strip():
        sha256 = resolve_checksum(artifact.sha256_template, context, ctx)

    inner_path = ""
    if artifact.inner_path.strip():
        inner_path = _render_field("innerPath", artifact.inner_path, context)

    cache_file = os.path.join(paths.cache_dir, f"{name}-{version}{artifact.format_extension()}")
    install_dir = os.path.join(paths.pkgs_dir, f"{name}-{version}")

    resolved = ArtifactResolved(
        name=name,
        version=version,
        url=url,
        sha256=sha256,
        format=fmt or "raw",
        inner_path=inner_path,
        mode=artifact.mode.strip(),
        bin_name=bin_name,
        cache_file=cache_file,
        install_dir=install_dir,
        binary_path=_binary_path(install_dir, fmt, bin_name, inner_path),
    )
    return resolved, context


def _declared_actions(recipe: Recipe) -> list[Action]:
    return [build_action(a.type, a.args, a.system) for a in recipe.actions]


def resolve_recipe(
    recipe: Recipe,
    platform: PlatformInfo,
    ctx: OperationContext,
) -> ResolveResult:
    """Resolve ``recipe`` for ``platform`` into an executable plan.

    Raises:
        UnsupportedTargetError: Platform outside the recipe's allow-lists.
        ConfigError / TemplateError / NetworkError / FormatError:
            Resolution failed at the named stage.
        OperationCancelled: The caller cancelled.
    """
    target = effective_target(recipe.target, platform)
    ensure_target_supported(target, platform)
    paths = resolve_paths(recipe.scope, recipe.paths)

    if recipe.artifact.is_empty():
        logger.debug("Recipe '%s' has no artifact, passing actions through", recipe.name)
        return ResolveResult(
            recipe=recipe,
            target=target,
            paths=paths,
            actions=_declared_actions(recipe),
        )

    ctx.check()
    resolved, context = resolve_artifact(recipe.artifact, recipe.name, platform, paths, ctx)

    if not recipe.actions:
        actions = default_actions(resolved, paths)
    else:
        extended = {
            **context,
            "URL": resolved.url,
            "CacheFile": resolved.cache_file,
            "InstallDir": resolved.install_dir,
            "BinDir": paths.bin_dir,
            "BinaryPath": resolved.binary_path,
            "BinName": resolved.bin_name,
        }
        actions = [
            render_action(action, lambda s: render(s, extended))
            for action in _declared_actions(recipe)
        ]

    logger.info(
        "Resolved '%s' %s → %s (%d actions)",
        recipe.name, resolved.version, resolved.url, len(actions),
    )
    return ResolveResult(
        recipe=recipe,
        target=target,
        paths=paths,
        resolved=resolved,
        actions=actions,
    )
