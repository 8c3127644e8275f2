"""
Tests for pure domain logic — semver, paths, targets, selectors.
"""

import os
from pathlib import Path

import pytest

from sth.core.errors import ConfigError, FormatError, UnsupportedTargetError
from sth.core.models.recipe import Paths, Target
from sth.core.models.resolved import PlatformInfo
from sth.core.services.provision.domain.json_selector import parse_selector, select
from sth.core.services.provision.domain.paths import resolve_paths
from sth.core.services.provision.domain.semver import highest_semver, parse_semver, strip_v
from sth.core.services.provision.domain.target import effective_target, ensure_target_supported


class TestSemver:
    """Tests for major.minor.patch parsing and selection."""

    def test_parse(self):
        assert parse_semver("1.10.0") == (1, 10, 0)

    @pytest.mark.parametrize("bad", ["1.2", "1.2.3-rc1", "v1.2.3", "latest", ""])
    def test_parse_rejects(self, bad: str):
        assert parse_semver(bad) is None

    def test_strip_v(self):
        assert strip_v("v1.2.3") == "1.2.3"
        assert strip_v("1.2.3") == "1.2.3"

    def test_highest_is_numeric(self):
        assert highest_semver(["v1.2.0", "v1.10.0", "v1.3.0"]) == "1.10.0"

    def test_highest_ignores_non_semver(self):
        assert highest_semver(["nightly", "v0.9.0", "v2.0.0-rc1"]) == "0.9.0"

    def test_highest_none(self):
        assert highest_semver(["nightly", "edge"]) == ""


class TestPaths:
    """Tests for scope defaults and overrides."""

    def test_user_scope(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        p = resolve_paths("user")
        root = os.path.join(str(tmp_path), ".local", "sth")
        assert p.root_dir == root
        assert p.bin_dir == os.path.join(root, "bin")
        assert p.pkgs_dir == os.path.join(root, "pkgs")
        assert p.cache_dir == os.path.join(root, "cache")
        assert p.manifests == os.path.join(root, "manifests")

    def test_system_scope(self):
        p = resolve_paths("system")
        assert p.root_dir == "/usr/local/sth"
        assert p.bin_dir == "/usr/local/sth/bin"

    def test_root_override_wins_over_scope(self):
        p = resolve_paths("system", Paths(root_dir="/opt/sth"))
        assert p.root_dir == "/opt/sth"
        assert p.pkgs_dir == "/opt/sth/pkgs"

    def test_roles_override_independently(self):
        p = resolve_paths("user", Paths(root_dir="/opt/sth", bin_dir="/usr/local/bin"))
        assert p.bin_dir == "/usr/local/bin"
        assert p.cache_dir == "/opt/sth/cache"

    def test_tilde_expanded(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        p = resolve_paths("user", Paths(root_dir="~/tools"))
        assert p.root_dir == os.path.join(str(tmp_path), "tools")


class TestTarget:
    """Tests for allow-list validation."""

    PLATFORM = PlatformInfo(os="linux", arch="amd64", distro="ubuntu", family="debian")

    def test_empty_lists_never_reject(self):
        ensure_target_supported(Target(), self.PLATFORM)

    def test_case_insensitive_match(self):
        ensure_target_supported(Target(os=["Linux", "darwin"], arch=["AMD64"]), self.PLATFORM)

    def test_os_rejected(self):
        with pytest.raises(UnsupportedTargetError) as exc:
            ensure_target_supported(Target(os=["darwin"]), self.PLATFORM)
        assert exc.value.kind == "OS"
        assert exc.value.detected == "linux"
        assert exc.value.allowed == ["darwin"]

    def test_arch_rejected(self):
        with pytest.raises(UnsupportedTargetError) as exc:
            ensure_target_supported(Target(arch=["arm64"]), self.PLATFORM)
        assert exc.value.kind == "Arch"
        assert "amd64" in str(exc.value)

    def test_effective_target_fills_from_platform(self):
        t = effective_target(Target(os=["linux"]), self.PLATFORM)
        assert t.os == ["linux"]
        assert t.distro == "ubuntu"
        assert t.family == "debian"

    def test_declared_values_win(self):
        t = effective_target(Target(distro="fedora", family="rhel"), self.PLATFORM)
        assert (t.distro, t.family) == ("fedora", "rhel")


class TestJsonSelector:
    """Tests for the JSONPath-like selector used by httpJson."""

    DOC = {"info": {"version": "1.4.2"}, "releases": [{"tag_name": "v2.0.0"}], "dist-tags": {"latest": "3.1.0"}}

    def test_dotted(self):
        assert select(self.DOC, "$.info.version") == "1.4.2"

    def test_without_dollar(self):
        assert select(self.DOC, "info.version") == "1.4.2"

    def test_index(self):
        assert select(self.DOC, "$.releases[0].tag_name") == "v2.0.0"
        assert select([{"name": "a"}, {"name": "b"}], "$[-1].name") == "b"

    def test_quoted_key(self):
        assert select(self.DOC, '$["dist-tags"].latest') == "3.1.0"

    def test_parse_steps(self):
        assert parse_selector("$.a[2].b") == ["a", 2, "b"]

    def test_missing_key(self):
        with pytest.raises(FormatError):
            select(self.DOC, "$.info.nope")

    def test_index_out_of_range(self):
        with pytest.raises(FormatError):
            select(self.DOC, "$.releases[5]")

    @pytest.mark.parametrize("bad", ["$", "", "$..a", "$.a[x]"])
    def test_malformed(self, bad: str):
        with pytest.raises(ConfigError):
            parse_selector(bad)
