"""
Tests for platform detection.
"""

from pathlib import Path

import pytest

from sth.core.services.provision.detection import platform_info
from sth.core.services.provision.detection.platform_info import (
    detect_arch,
    detect_distro,
    detect_family,
    get_platform_info,
)


class TestDistro:
    """Tests for distro and family detection."""

    def test_os_release_first(self, tmp_path: Path):
        os_release = tmp_path / "os-release"
        os_release.write_text('NAME="Ubuntu"\nID=ubuntu\nID_LIKE=debian\n')
        lsb = tmp_path / "lsb-release"
        lsb.write_text("DISTRIB_ID=Other\n")
        assert detect_distro(((os_release, "ID="), (lsb, "DISTRIB_ID="))) == "ubuntu"

    def test_lsb_release_fallback(self, tmp_path: Path):
        lsb = tmp_path / "lsb-release"
        lsb.write_text('DISTRIB_ID="LinuxMint"\n')
        assert detect_distro(((tmp_path / "missing", "ID="), (lsb, "DISTRIB_ID="))) == "linuxmint"

    def test_nothing_found(self, tmp_path: Path):
        assert detect_distro(((tmp_path / "missing", "ID="),)) == "other"

    @pytest.mark.parametrize(
        "distro, family",
        [("ubuntu", "debian"), ("Fedora", "rhel"), ("manjaro", "arch"), ("alpine", "other")],
    )
    def test_family(self, distro, family):
        assert detect_family(distro) == family


class TestArch:
    @pytest.mark.parametrize("machine, arch", [("x86_64", "amd64"), ("aarch64", "arm64"), ("mips", "mips")])
    def test_go_style_names(self, monkeypatch, machine, arch):
        monkeypatch.setattr(platform_info.platform, "machine", lambda: machine)
        assert detect_arch() == arch


def test_get_platform_info_is_populated():
    info = get_platform_info()
    assert info.os
    assert info.arch
    assert info.family in {"debian", "rhel", "arch", "other"}
