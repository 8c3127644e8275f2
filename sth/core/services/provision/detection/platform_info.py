"""
L3 Detection — Platform information.

Read-only probes producing the ``PlatformInfo`` consumed by the
resolver: OS and architecture in Go-style names (release assets are
overwhelmingly named that way), distro ID from os-release, and the
distro family.
"""

from __future__ import annotations

import platform
from pathlib import Path

from sth.core.models.resolved import PlatformInfo

FAMILY_DEBIAN = "debian"
FAMILY_RHEL = "rhel"
FAMILY_ARCH = "arch"
FAMILY_OTHER = "other"
DISTRO_OTHER = "other"

_DEBIAN_IDS = {"debian", "ubuntu", "linuxmint", "raspbian", "pop", "neon", "kali", "zorin", "elementary"}
_RHEL_IDS = {"rhel", "rocky", "almalinux", "centos", "fedora", "oracle"}
_ARCH_IDS = {"arch", "manjaro", "endeavouros"}

# uname -m → Go-style GOARCH
_ARCH_MAP: dict[str, str] = {
    "x86_64": "amd64",
    "amd64": "amd64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "armv7l": "arm",
    "armv6l": "arm",
    "i686": "386",
    "i386": "386",
    "ppc64le": "ppc64le",
    "s390x": "s390x",
    "riscv64": "riscv64",
}

_RELEASE_FILES = (
    (Path("/etc/os-release"), "ID="),
    (Path("/etc/lsb-release"), "DISTRIB_ID="),
)


def normalize(value: str) -> str:
    return value.strip().lower()


def detect_os() -> str:
    return normalize(platform.system())


def detect_arch() -> str:
    machine = normalize(platform.machine())
    return _ARCH_MAP.get(machine, machine)


def _find_in_file(path: Path, needle: str) -> str | None:
    try:
        with open(path, encoding="utf-8") as f:
            for line in f:
                if line.startswith(needle):
                    return normalize(line[len(needle):].strip().strip('"'))
    except OSError:
        return None
    return None


def detect_distro(release_files: tuple[tuple[Path, str], ...] = _RELEASE_FILES) -> str:
    """Distro ID from os-release, then lsb-release, else ``"other"``."""
    for path, needle in release_files:
        found = _find_in_file(path, needle)
        if found:
            return found
    return DISTRO_OTHER


def detect_family(distro: str) -> str:
    distro = normalize(distro)
    if distro in _DEBIAN_IDS:
        return FAMILY_DEBIAN
    if distro in _RHEL_IDS:
        return FAMILY_RHEL
    if distro in _ARCH_IDS:
        return FAMILY_ARCH
    return FAMILY_OTHER


def get_platform_info() -> PlatformInfo:
    """Probe the running system."""
    distro = detect_distro()
    return PlatformInfo(
        os=detect_os(),
        arch=detect_arch(),
        distro=distro,
        family=detect_family(distro),
    )
