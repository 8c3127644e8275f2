"""
Tests for default action synthesis and typed action models.
"""

import pytest

from sth.core.errors import ConfigError, TemplateError
from sth.core.models.actions import (
    ACTION_KINDS,
    ChmodAction,
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
from sth.core.models.recipe import Paths
from sth.core.models.resolved import ArtifactResolved
from sth.core.services.provision.domain.action_synthesis import default_actions

PATHS = Paths(
    root_dir="/r",
    bin_dir="/r/bin",
    pkgs_dir="/r/pkgs",
    cache_dir="/r/cache",
    manifests="/r/manifests",
)


def _artifact(**overrides) -> ArtifactResolved:
    fields = dict(
        name="tool",
        version="2.3.1",
        url="https://x/tool",
        format="raw",
        bin_name="tool",
        cache_file="/r/cache/tool-2.3.1",
        install_dir="/r/pkgs/tool-2.3.1",
        binary_path="/r/pkgs/tool-2.3.1/tool",
    )
    fields.update(overrides)
    return ArtifactResolved(**fields)


class TestDefaultActions:
    """Tests for the format-driven install sequence."""

    def test_raw_minimal_sequence(self):
        actions = default_actions(_artifact(), PATHS)
        assert [a.type for a in actions] == ["download", "mkdir", "move", "symlink"]

    def test_raw_move_targets_binary_path(self):
        move = default_actions(_artifact(), PATHS)[2]
        assert isinstance(move, MoveAction)
        assert move.src == "/r/cache/tool-2.3.1"
        assert move.dest == "/r/pkgs/tool-2.3.1/tool"

    def test_checksum_and_mode_add_steps(self):
        actions = default_actions(_artifact(sha256="ab" * 32, mode="0755"), PATHS)
        assert [a.type for a in actions] == ["download", "verify", "mkdir", "move", "chmod", "symlink"]
        assert isinstance(actions[1], VerifyAction)
        assert isinstance(actions[4], ChmodAction)
        assert actions[4].mode == "0755"

    def test_mkdir_mode(self):
        mkdir = default_actions(_artifact(), PATHS)[1]
        assert isinstance(mkdir, MkdirAction)
        assert (mkdir.path, mkdir.mode) == ("/r/pkgs/tool-2.3.1", "0755")

    @pytest.mark.parametrize("fmt", ["tar.gz", "tgz", "zip"])
    def test_archives_extract_into_install_dir(self, fmt: str):
        unpack = default_actions(_artifact(format=fmt), PATHS)[2]
        assert isinstance(unpack, ExtractAction)
        assert unpack.dest == "/r/pkgs/tool-2.3.1"

    def test_gz_gunzips_to_binary(self):
        unpack = default_actions(_artifact(format="gz"), PATHS)[2]
        assert isinstance(unpack, GunzipAction)
        assert unpack.dest == "/r/pkgs/tool-2.3.1/tool"

    def test_symlink_is_last(self):
        link = default_actions(_artifact(bin_name="tl"), PATHS)[-1]
        assert isinstance(link, SymlinkAction)
        assert link.src == "/r/pkgs/tool-2.3.1/tool"
        assert link.dest == "/r/bin/tl"


class TestBuildAction:
    """Tests for raw → typed action conversion."""

    def test_builds_typed_model(self):
        action = build_action("shell", {"cmd": "echo hi"}, system=True)
        assert isinstance(action, ShellAction)
        assert action.cmd == "echo hi"
        assert action.system is True

    def test_default_mkdir_mode(self):
        assert build_action("mkdir", {"path": "/x"}).mode == "0755"

    def test_unknown_type(self):
        with pytest.raises(ConfigError, match="unknown action"):
            build_action("teleport", {})

    def test_missing_args(self):
        with pytest.raises(ConfigError, match="dest"):
            build_action("download", {"url": "https://x"})

    def test_extra_args_ignored(self):
        action = build_action("chmod", {"path": "/x", "mode": "0700", "colour": "red"})
        assert action.mode == "0700"

    def test_every_kind_known(self):
        assert ACTION_KINDS == {
            "download", "verify", "mkdir", "move", "gunzip",
            "extract", "chmod", "symlink", "shell",
        }


class TestRenderAction:
    """Tests for the cross-cutting render pass."""

    def test_renders_every_string_field(self):
        action = build_action("symlink", {"src": "<{{.A}}>", "dest": "<{{.B}}>"})
        rendered = render_action(action, lambda s: s.replace("{{.A}}", "1").replace("{{.B}}", "2"))
        assert (rendered.src, rendered.dest) == ("<1>", "<2>")
        assert rendered.type == "symlink"

    def test_error_names_type_and_key(self):
        def boom(value: str) -> str:
            if "bad" in value:
                raise TemplateError("nope")
            return value

        action = build_action("shell", {"cmd": "bad"})
        with pytest.raises(TemplateError, match="'shell' arg 'cmd'"):
            render_action(action, boom)
