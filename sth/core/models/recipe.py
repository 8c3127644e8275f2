"""
Recipe models — the author-facing description of one install.

A recipe names a target artifact, how to discover its version, how
to build its download URL, and (optionally) the exact actions to
run.  Recipes are loaded from YAML with camelCase keys and are
immutable once loaded: resolution never mutates them.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

InstallScope = Literal["user", "system"]

# Archive formats understood by the resolver ("tgz" is an alias of "tar.gz")
ARCHIVE_FORMATS = {"", "raw", "gz", "tar.gz", "tgz", "zip"}

_FORMAT_EXTENSIONS = {
    "gz": ".gz",
    "tar.gz": ".tar.gz",
    "tgz": ".tar.gz",
    "zip": ".zip",
}


class _RecipeModel(BaseModel):
    """Shared config: camelCase YAML keys, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
        coerce_numbers_to_str=True,     # `mode: 755` in YAML arrives as an int
    )


class Paths(_RecipeModel):
    """Directory roles; empty values fall back to scope defaults."""

    root_dir: str = ""
    bin_dir: str = ""
    pkgs_dir: str = ""
    cache_dir: str = ""
    manifests: str = ""


class Target(_RecipeModel):
    """Platform applicability filter.  Empty lists mean no restriction."""

    os: list[str] = Field(default_factory=list)     # ["linux", "darwin"]
    arch: list[str] = Field(default_factory=list)   # ["amd64", "arm64"]
    distro: str = ""                                # e.g. "ubuntu"
    family: str = ""                                # e.g. "debian"


class VersionSource(_RecipeModel):
    """Strategy for discovering the artifact version at resolve time.

    ``type`` is one of ``static``, ``githubRelease``, ``githubTag``,
    ``httpJson`` or ``regex``.  ``fallback`` is used whenever the
    strategy fails or its fields are incomplete.
    """

    type: str = ""
    fallback: str = ""

    # GitHub discovery
    repo: str = ""              # owner/name
    prerelease: bool = False
    constraint: str = ""

    # HTTP JSON / regex discovery
    url: str = ""
    selector: str = ""          # e.g. "$.tag_name"
    pattern: str = ""           # regex, named group "version" preferred

    # static
    value: str = ""


class Artifact(_RecipeModel):
    """Template-bearing descriptor of the downloadable thing."""

    name: str = ""
    version: VersionSource = Field(default_factory=VersionSource)
    url_template: str = ""
    sha256_template: str = ""
    format: str = ""            # raw | gz | tar.gz | zip
    inner_path: str = ""
    mode: str = ""              # octal string, e.g. "0755"
    bin_name: str = ""

    def is_empty(self) -> bool:
        """True when nothing is set — the recipe is shell/system steps only."""
        fields = (
            self.url_template,
            self.sha256_template,
            self.inner_path,
            self.format,
            self.name,
            self.bin_name,
            self.version.type,
            self.version.value,
            self.version.fallback,
        )
        return not any(f.strip() for f in fields)

    @property
    def normalized_format(self) -> str:
        return self.format.strip().lower()

    def format_extension(self) -> str:
        return _FORMAT_EXTENSIONS.get(self.normalized_format, "")


class InstallAction(_RecipeModel):
    """One raw action as written in YAML: a type tag plus string args."""

    type: str
    args: dict[str, str] = Field(default_factory=dict)
    system: bool = False


class Recipe(_RecipeModel):
    """The main unit describing how to install one package."""

    name: str
    slug: str = ""
    description: str = ""

    target: Target = Field(default_factory=Target)
    scope: InstallScope = "user"

    artifact: Artifact = Field(default_factory=Artifact)
    actions: list[InstallAction] = Field(default_factory=list)

    paths: Paths = Field(default_factory=Paths)
