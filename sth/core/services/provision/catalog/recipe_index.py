"""
Recipe catalog — the published index of available recipes.

A recipe repository holds ``<folder>/recipe.yml`` files plus an
``index.yaml`` mapping a key (``kubectl``, ``kubectl@linux-amd64``,
``nvim@system``) to discovery metadata.  This module generates that
index from a directory, fetches it (with a 12-hour local cache), and
looks recipes up in it.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from sth.core.config.loader import RECIPE_FILENAMES, load_recipe, load_yaml, normalize_list, recipe_from_data
from sth.core.config.settings import INDEX_CACHE_TTL, INDEX_FILENAME, cache_file, recipes_base
from sth.core.context import OperationContext
from sth.core.errors import ConfigError, FormatError
from sth.core.models.index import RecipeIndex, RecipeIndexEntry
from sth.core.models.recipe import Recipe
from sth.core.persistence.cache import is_fresh, load_cache, save_cache
from sth.core.services.provision.resolver.http_fetch import fetch_text

logger = logging.getLogger(__name__)


# ── Index generation ────────────────────────────────────────────


def index_key(recipe: Recipe, recipe_path: Path) -> str:
    """Index key from the recipe's folder name plus target qualifiers.

    ``nvim``, ``nvim@linux``, ``nvim@arm64``, ``nvim@linux-amd64``;
    system scope appends ``system`` (``nvim@system``,
    ``nvim@linux,system``).  Multi-valued OS/arch lists add no
    qualifier.
    """
    base = recipe_path.parent.name.strip() or recipe.slug.strip() or "unknown"
    os_list = normalize_list(recipe.target.os)
    arch_list = normalize_list(recipe.target.arch)

    key = base
    if len(os_list) == 1 and len(arch_list) == 1:
        key = f"{base}@{os_list[0]}-{arch_list[0]}"
    elif len(os_list) == 1 and not arch_list:
        key = f"{base}@{os_list[0]}"
    elif not os_list and len(arch_list) == 1:
        key = f"{base}@{arch_list[0]}"

    if recipe.scope == "system":
        key += ",system" if "@" in key else "@system"
    return key


def scan_recipes(recipes_dir: Path) -> list[Path]:
    """All ``recipe.yml`` / ``recipe.yaml`` files below ``recipes_dir``, sorted."""
    return sorted(
        p for p in recipes_dir.rglob("*")
        if p.is_file() and p.name.lower() in RECIPE_FILENAMES
    )


def build_index(recipes_dir: Path, base_dir: Path | None = None) -> RecipeIndex:
    """Scan ``recipes_dir`` and build the index.

    Entry paths are POSIX paths relative to ``base_dir`` (default:
    the parent of ``recipes_dir``, i.e. the repository root).

    Raises:
        ConfigError: No recipes found, an invalid recipe, or two
            recipes mapping to the same key.
    """
    base_dir = base_dir or recipes_dir.parent
    files = scan_recipes(recipes_dir)
    if not files:
        raise ConfigError(f"no recipes found in {recipes_dir}")

    recipes: dict[str, RecipeIndexEntry] = {}
    for path in files:
        recipe = load_recipe(path)
        key = index_key(recipe, path)
        if key in recipes:
            raise ConfigError(f"duplicate index key {key!r} (path {path})")
        recipes[key] = RecipeIndexEntry(
            slug=recipe.slug,
            name=recipe.name,
            description=recipe.description,
            path=path.relative_to(base_dir).as_posix(),
            os=normalize_list(recipe.target.os),
            distro=recipe.target.distro,
            family=recipe.target.family,
            arch=normalize_list(recipe.target.arch),
            scope=recipe.scope,
        )

    return RecipeIndex(recipes=dict(sorted(recipes.items())))


def generate_index(recipes_dir: Path, out_path: Path, base_dir: Path | None = None) -> RecipeIndex:
    """Build the index for ``recipes_dir`` and write it as YAML to ``out_path``."""
    index = build_index(recipes_dir, base_dir)
    content = yaml.safe_dump(
        index.model_dump(mode="json"),
        sort_keys=True,
        default_flow_style=False,
        allow_unicode=True,
    )
    try:
        out_path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot write {out_path}: {e}") from e
    logger.info("Wrote %s (%d recipes)", out_path, len(index.recipes))
    return index


# ── Remote index ────────────────────────────────────────────────


def parse_index(text: str, source: str = "<string>") -> RecipeIndex:
    data = load_yaml(text, source) or {}
    try:
        return RecipeIndex.model_validate(data)
    except ValidationError as e:
        raise FormatError(f"Invalid recipe index in {source}: {e}") from e


def fetch_recipe_index(
    ctx: OperationContext,
    base: str | None = None,
    cache_path: Path | None = None,
) -> RecipeIndex:
    """Download the index and refresh the local cache.

    A cache write failure is logged and otherwise ignored.
    """
    url = (base or recipes_base()) + INDEX_FILENAME
    logger.info("Downloading recipe index from %s", url)
    index = parse_index(fetch_text(url, ctx), source=url)

    cache_path = cache_path or Path(cache_file())
    try:
        save_cache(cache_path, index)
    except OSError as e:
        logger.warning("Cannot write recipe index cache %s: %s", cache_path, e)
    return index


def get_recipe_index(
    ctx: OperationContext,
    base: str | None = None,
    cache_path: Path | None = None,
    ttl: float = INDEX_CACHE_TTL,
) -> RecipeIndex:
    """The recipe index, from cache when fresh, else from the network.

    A cache that cannot be read or parsed degrades to a refetch.
    """
    cache_path = cache_path or Path(cache_file())
    if is_fresh(cache_path, ttl):
        try:
            index = RecipeIndex.model_validate(load_cache(cache_path))
        except (OSError, ValueError) as e:
            logger.warning("Failed to load recipe index cache %s (%s), refetching", cache_path, e)
        else:
            logger.debug("Using cached recipe index %s", cache_path)
            return index
    return fetch_recipe_index(ctx, base, cache_path)


# ── Lookup ──────────────────────────────────────────────────────


def find_recipe(query: str, index: RecipeIndex) -> tuple[str, RecipeIndexEntry]:
    """Find a recipe by key or slug.

    Exact key, then exact slug, then the first slug containing
    ``query`` (in sorted key order).

    Raises:
        ConfigError: Nothing matches.
    """
    query = query.strip()
    if query in index.recipes:
        return query, index.recipes[query]

    ordered = sorted(index.recipes.items())
    for key, entry in ordered:
        if entry.slug == query:
            return key, entry
    for key, entry in ordered:
        if query and query in entry.slug:
            return key, entry
    raise ConfigError(f"recipe not found: {query}")


def fetch_recipe(entry: RecipeIndexEntry, ctx: OperationContext, base: str | None = None) -> Recipe:
    """Download and parse the recipe an index entry points to."""
    url = (base or recipes_base()) + entry.path
    logger.info("Downloading recipe for %s", entry.name or entry.slug)
    data = load_yaml(fetch_text(url, ctx), source=url)
    if isinstance(data, dict) and not str(data.get("slug") or "").strip():
        data = {**data, "slug": entry.slug}
    return recipe_from_data(data, source=url)


def list_recipes(index: RecipeIndex) -> list[str]:
    """One display line per recipe, sorted by key."""
    lines = []
    for key, e in sorted(index.recipes.items()):
        quals = []
        if e.os:
            quals.append("os=" + "|".join(e.os))
        if e.arch:
            quals.append("arch=" + "|".join(e.arch))
        if e.scope:
            quals.append(f"scope={e.scope}")
        line = f"{key}: {e.name or e.slug} ({', '.join(quals)}) -> {e.path}"
        if e.description:
            line += f"  # {e.description}"
        lines.append(line)
    return lines
