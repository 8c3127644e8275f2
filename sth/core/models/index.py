"""
Recipe index models — the catalogue of available recipes.

The index is a YAML mapping of key → entry, generated from a
recipes directory and published next to the recipes themselves.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from sth.core.models.recipe import InstallScope


class RecipeIndexEntry(BaseModel):
    """Discovery metadata for one recipe file."""

    model_config = ConfigDict(extra="ignore")

    slug: str
    name: str = ""
    description: str = ""

    path: str
    os: list[str] = Field(default_factory=list)
    distro: str = ""
    family: str = ""
    arch: list[str] = Field(default_factory=list)

    scope: InstallScope = "user"


class RecipeIndex(BaseModel):
    """Lists available recipes keyed by index key (e.g. ``kubectl@linux``)."""

    model_config = ConfigDict(extra="ignore")

    recipes: dict[str, RecipeIndexEntry] = Field(default_factory=dict)
