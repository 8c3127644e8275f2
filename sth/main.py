"""
sth — CLI entrypoint.

Usage:
    sth --help
    sth install ./recipes/kubectl/recipe.yml
    sth install kubectl --dry-run
    sth resolve kubectl --json
    sth recipes list
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from sth import __version__
from sth.core.errors import ProvisionError
from sth.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="sth")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """sth — install release binaries from declarative recipes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("STH_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("STH_LOG_FILE"),
        log_file_level=os.environ.get("STH_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


def _load_recipe(target: str, root: str | None = None):
    """A recipe from a local file/folder, else by key or slug from the index."""
    from sth.core.config.loader import load_recipe
    from sth.core.context import OperationContext
    from sth.core.services.provision.catalog import fetch_recipe, find_recipe, get_recipe_index

    path = Path(target)
    if path.exists():
        recipe = load_recipe(path)
    else:
        ctx = OperationContext.background()
        _key, entry = find_recipe(target, get_recipe_index(ctx))
        recipe = fetch_recipe(entry, ctx)

    if root:
        paths = recipe.paths.model_copy(update={"root_dir": root})
        recipe = recipe.model_copy(update={"paths": paths})
    return recipe


def _fail(message: str, as_json: bool, **extra: object) -> None:
    if as_json:
        click.echo(json.dumps({"status": "failed", "error": message, **extra}, indent=2))
    else:
        click.secho(f"❌ {message}", fg="red")
    sys.exit(1)


# ── Install ─────────────────────────────────────────────────────


@cli.command()
@click.argument("target")
@click.option("--dry-run", is_flag=True, help="Resolve and show the actions without running them.")
@click.option("--root", default=None, help="Override the install root directory.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, target: str, dry_run: bool, root: str | None, as_json: bool) -> None:
    """Install TARGET (a recipe file, folder, index key or slug)."""
    from sth.core.context import ExecOptions
    from sth.core.services.provision.orchestration import InstallReport, install_recipe

    options = ExecOptions(
        quiet=ctx.obj.get("quiet", False),
        verbose=ctx.obj.get("verbose", False),
        dry_run=dry_run,
    )
    reporter = (lambda _msg: None) if as_json else click.echo
    report = InstallReport()

    try:
        recipe = _load_recipe(target, root)
        if not as_json and not options.quiet:
            click.secho(f"🚀 Installing {recipe.name}", fg="cyan", bold=True)
        install_recipe(recipe, options=options, reporter=reporter, report=report)
    except ProvisionError as e:
        _fail(str(e), as_json, recipe=report.recipe or target, state=report.state)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))


# ── Resolve ─────────────────────────────────────────────────────


@cli.command()
@click.argument("target")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def resolve(target: str, as_json: bool) -> None:
    """Show what installing TARGET would do, without touching disk."""
    from sth.core.context import OperationContext
    from sth.core.services.provision.detection import get_platform_info
    from sth.core.services.provision.orchestration.orchestrator import describe_action
    from sth.core.services.provision.resolver import resolve_recipe

    try:
        recipe = _load_recipe(target)
        result = resolve_recipe(recipe, get_platform_info(), OperationContext.background())
    except ProvisionError as e:
        _fail(str(e), as_json, recipe=target)

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
        return

    click.secho(f"\n📋 {recipe.name}", fg="cyan", bold=True)
    if recipe.description:
        click.echo(f"   {recipe.description}")
    art = result.resolved
    if art is not None:
        click.echo(f"   Version:  {art.version}")
        click.echo(f"   URL:      {art.url}")
        if art.sha256:
            click.echo(f"   SHA-256:  {art.sha256}")
        click.echo(f"   Cache:    {art.cache_file}")
        click.echo(f"   Binary:   {art.binary_path}")
        click.echo(f"   Link:     {result.link_path}")
    click.echo()
    click.secho(f"   Actions: {len(result.actions)}", bold=True)
    for i, action in enumerate(result.actions, 1):
        click.echo(f"     {i}. {describe_action(action)}")


# ── Platform ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def platform(as_json: bool) -> None:
    """Show the detected OS, architecture, distro and family."""
    from sth.core.services.provision.detection import get_platform_info

    info = get_platform_info()
    if as_json:
        click.echo(json.dumps(info.model_dump(), indent=2))
        return

    click.echo(f"OS:     {info.os}")
    click.echo(f"Arch:   {info.arch}")
    click.echo(f"Distro: {info.distro}")
    click.echo(f"Family: {info.family}")


# ── Register sub-command groups from sth/ui/cli/ ──────────────────

from sth.ui.cli.recipes import recipes  # noqa: E402

cli.add_command(recipes)


if __name__ == "__main__":
    cli()
