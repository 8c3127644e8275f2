"""
Domain models — Pydantic types for the provisioning engine.

All models are re-exported here for convenient access:

    from sth.core.models import Recipe, ResolveResult, DownloadAction
"""

from sth.core.models.actions import (
    ACTION_KINDS,
    Action,
    ChmodAction,
    DownloadAction,
    ExtractAction,
    GunzipAction,
    MkdirAction,
    MoveAction,
    ShellAction,
    SymlinkAction,
    VerifyAction,
    build_action,
    render_action,
)
from sth.core.models.index import RecipeIndex, RecipeIndexEntry
from sth.core.models.recipe import (
    Artifact,
    InstallAction,
    InstallScope,
    Paths,
    Recipe,
    Target,
    VersionSource,
)
from sth.core.models.resolved import ArtifactResolved, PlatformInfo, ResolveResult

__all__ = [
    # actions.py
    "ACTION_KINDS",
    "Action",
    "ChmodAction",
    "DownloadAction",
    "ExtractAction",
    "GunzipAction",
    "MkdirAction",
    "MoveAction",
    "ShellAction",
    "SymlinkAction",
    "VerifyAction",
    "build_action",
    "render_action",
    # index.py
    "RecipeIndex",
    "RecipeIndexEntry",
    # recipe.py
    "Artifact",
    "InstallAction",
    "InstallScope",
    "Paths",
    "Recipe",
    "Target",
    "VersionSource",
    # resolved.py
    "ArtifactResolved",
    "PlatformInfo",
    "ResolveResult",
]
