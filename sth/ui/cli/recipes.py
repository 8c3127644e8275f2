"""
CLI commands for the recipe catalog.

Thin wrappers over ``sth.core.services.provision.catalog``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from sth.core.errors import ProvisionError


@click.group()
def recipes() -> None:
    """Recipes — list the published catalog, generate an index."""


@recipes.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List recipes in the remote index (cached for 12 hours)."""
    from sth.core.context import OperationContext
    from sth.core.services.provision.catalog import get_recipe_index, list_recipes

    try:
        index = get_recipe_index(OperationContext.background())
    except ProvisionError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(index.model_dump(mode="json"), indent=2))
        return

    if not index.recipes:
        click.secho("⚠️  The recipe index is empty", fg="yellow")
        return

    if not ctx.obj.get("quiet"):
        click.secho(f"📚 Available recipes ({len(index.recipes)}):", fg="cyan", bold=True)
    for line in list_recipes(index):
        click.echo(f"   • {line}")


@recipes.command("index")
@click.option(
    "--recipes-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("recipes"),
    show_default=True,
    help="Directory holding <name>/recipe.yml files.",
)
@click.option(
    "--out",
    "out_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=Path("index.yaml"),
    show_default=True,
    help="Where to write the index.",
)
def index_cmd(recipes_dir: Path, out_path: Path) -> None:
    """Generate index.yaml for a recipe repository."""
    from sth.core.services.provision.catalog import generate_index

    try:
        index = generate_index(recipes_dir, out_path)
    except ProvisionError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.secho(f"✅ Wrote {out_path} ({len(index.recipes)} recipes)", fg="green")
