"""
Configuration loader — reads recipe YAML into domain models.

This is the primary entry point for loading recipes.  It reads YAML,
applies load-time defaults, validates against the Pydantic schema,
and returns an immutable ``Recipe``.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from sth.core.errors import ConfigError
from sth.core.models.recipe import Recipe

logger = logging.getLogger(__name__)

RECIPE_FILENAMES = ("recipe.yml", "recipe.yaml")

# YAML 1.1 would read `mode: 0755` as the integer 493
_OCTAL_LIKE = re.compile(r"^0[0-7]+$")


class RecipeYamlLoader(yaml.SafeLoader):
    """SafeLoader that keeps zero-prefixed octal scalars as strings."""


def _construct_int(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> Any:
    raw = loader.construct_scalar(node)
    if isinstance(raw, str) and _OCTAL_LIKE.match(raw):
        return raw
    return yaml.SafeLoader.construct_yaml_int(loader, node)


RecipeYamlLoader.add_constructor("tag:yaml.org,2002:int", _construct_int)


def normalize_list(values: list[str] | None) -> list[str]:
    """Lower-case, strip, drop empties and duplicates, sort ascending."""
    seen: set[str] = set()
    out: list[str] = []
    for v in values or []:
        s = str(v).strip().lower()
        if s and s not in seen:
            seen.add(s)
            out.append(s)
    return sorted(out)


def load_yaml(text: str, source: str = "<string>") -> Any:
    """Parse YAML with the recipe loader, wrapping errors in ``ConfigError``."""
    try:
        return yaml.load(text, Loader=RecipeYamlLoader)  # noqa: S506 (SafeLoader subclass)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {source}: {e}") from e


def recipe_from_data(data: Any, path: Path | None = None, source: str = "<string>") -> Recipe:
    """Validate a decoded YAML document as a ``Recipe``.

    Load-time defaults:
        - ``slug`` falls back to the recipe's folder name
        - ``name`` falls back to the slug
        - ``scope`` falls back to ``user``
        - ``target.os`` / ``target.arch`` are normalized
    """
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {source}, got {type(data).__name__}")

    data = dict(data)
    if not str(data.get("slug") or "").strip() and path is not None:
        data["slug"] = path.resolve().parent.name
    if not str(data.get("name") or "").strip():
        data["name"] = data.get("slug") or ""
    if not data["name"]:
        raise ConfigError(f"Recipe in {source} has neither name nor slug")
    if not data.get("scope"):
        data["scope"] = "user"

    target = data.get("target")
    if isinstance(target, dict):
        target = dict(target)
        target["os"] = normalize_list(target.get("os"))
        target["arch"] = normalize_list(target.get("arch"))
        data["target"] = target

    try:
        recipe = Recipe.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid recipe in {source}: {e}") from e

    logger.debug("Loaded recipe '%s' from %s", recipe.name, source)
    return recipe


def parse_recipe(text: str, source: str = "<string>", path: Path | None = None) -> Recipe:
    """Parse recipe YAML text."""
    return recipe_from_data(load_yaml(text, source), path=path, source=source)


def load_recipe(path: Path) -> Recipe:
    """Load and validate a recipe file.

    Args:
        path: Path to a recipe YAML file, or a directory holding
            ``recipe.yml`` / ``recipe.yaml``.

    Raises:
        ConfigError: If the file is missing, unreadable, or invalid.
    """
    if path.is_dir():
        for name in RECIPE_FILENAMES:
            if (path / name).is_file():
                path = path / name
                break

    if not path.is_file():
        raise ConfigError(f"Recipe file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    return parse_recipe(raw, source=str(path), path=path)
