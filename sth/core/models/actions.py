"""
Typed install actions — the closed set of steps the executor runs.

Recipes write actions as ``{type, args, system}``.  The resolver turns
each one into a concrete model below via ``build_action()`` so that
every executor receives named, validated fields instead of a string
bag.  ``render_action()`` is the one cross-cutting pass that pushes
every string field through the template renderer.
"""

from __future__ import annotations

from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from sth.core.errors import ConfigError, TemplateError


class _ActionBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    system: bool = False    # elevation intent; informational only


class DownloadAction(_ActionBase):
    type: Literal["download"] = "download"
    url: str
    dest: str


class VerifyAction(_ActionBase):
    type: Literal["verify"] = "verify"
    file: str
    sha256: str


class MkdirAction(_ActionBase):
    type: Literal["mkdir"] = "mkdir"
    path: str
    mode: str = "0755"


class MoveAction(_ActionBase):
    type: Literal["move"] = "move"
    src: str
    dest: str


class GunzipAction(_ActionBase):
    type: Literal["gunzip"] = "gunzip"
    src: str
    dest: str


class ExtractAction(_ActionBase):
    type: Literal["extract"] = "extract"
    src: str
    dest: str


class ChmodAction(_ActionBase):
    type: Literal["chmod"] = "chmod"
    path: str
    mode: str = ""


class SymlinkAction(_ActionBase):
    type: Literal["symlink"] = "symlink"
    src: str
    dest: str


class ShellAction(_ActionBase):
    type: Literal["shell"] = "shell"
    cmd: str


Action = Annotated[
    Union[
        DownloadAction,
        VerifyAction,
        MkdirAction,
        MoveAction,
        GunzipAction,
        ExtractAction,
        ChmodAction,
        SymlinkAction,
        ShellAction,
    ],
    Field(discriminator="type"),
]

ACTION_MODELS: tuple[type[_ActionBase], ...] = (
    DownloadAction,
    VerifyAction,
    MkdirAction,
    MoveAction,
    GunzipAction,
    ExtractAction,
    ChmodAction,
    SymlinkAction,
    ShellAction,
)

ACTION_KINDS: frozenset[str] = frozenset(
    m.model_fields["type"].default for m in ACTION_MODELS
)

_ACTION_ADAPTER: TypeAdapter = TypeAdapter(Action)

# Fields that are never template-rendered
_NON_RENDERED = {"type", "system"}


def build_action(action_type: str, args: dict[str, str], system: bool = False) -> Action:
    """Convert a raw ``{type, args, system}`` action into its typed model.

    Raises:
        ConfigError: Unknown action type or missing/invalid arguments.
    """
    if action_type not in ACTION_KINDS:
        raise ConfigError(f"unknown action: {action_type!r}")
    payload = {**args, "type": action_type, "system": system}
    try:
        return _ACTION_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        fields = ", ".join(
            ".".join(str(p) for p in err["loc"][1:]) or "?" for err in exc.errors()
        )
        raise ConfigError(f"invalid {action_type} action (args: {fields})") from exc


def action_args(action: Action) -> dict[str, str]:
    """The string arguments of an action, keyed by name."""
    return {
        name: value
        for name, value in action.model_dump().items()
        if name not in _NON_RENDERED
    }


def render_action(action: Action, render: Callable[[str], str]) -> Action:
    """Render every string field of ``action`` through ``render``.

    Raises:
        TemplateError: Naming the action type and the offending key.
    """
    update: dict[str, str] = {}
    for key, value in action_args(action).items():
        try:
            update[key] = render(value)
        except TemplateError as exc:
            raise TemplateError(
                f"render action {action.type!r} arg {key!r}: {exc}"
            ) from exc
    return action.model_copy(update=update)
