"""
Resolution models — platform input and the resolver's output.

``ResolveResult`` is the only object passed from the resolver to the
executor.  It is produced fresh on every run and never persisted.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field

from sth.core.models.actions import Action
from sth.core.models.recipe import Paths, Recipe, Target


class PlatformInfo(BaseModel):
    """Detected platform, in Go-style names (``linux``/``amd64``)."""

    model_config = ConfigDict(frozen=True)

    os: str = ""
    arch: str = ""
    distro: str = ""
    family: str = ""


class ArtifactResolved(BaseModel):
    """The artifact after version discovery and template rendering."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    url: str
    sha256: str = ""
    format: str = ""
    inner_path: str = ""
    mode: str = ""
    bin_name: str = ""

    cache_file: str     # <cacheDir>/<name>-<version><ext>
    install_dir: str    # <pkgsDir>/<name>-<version>
    binary_path: str    # <installDir>/<innerPath or binName>


class ResolveResult(BaseModel):
    """Everything the executor needs; actions are fully rendered."""

    model_config = ConfigDict(frozen=True)

    recipe: Recipe
    target: Target
    paths: Paths
    resolved: ArtifactResolved | None = None
    actions: list[Action] = Field(default_factory=list)

    @property
    def link_path(self) -> str:
        """``binDir/binName`` — empty for pure shell recipes."""
        if self.resolved is None or not self.resolved.bin_name:
            return ""
        return os.path.join(self.paths.bin_dir, self.resolved.bin_name)
