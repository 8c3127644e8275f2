"""
L3 Detection — ``__init__.py`` re-exports all detection functions.

These functions READ the system but never modify it.
"""

from sth.core.services.provision.detection.platform_info import (  # noqa: F401
    detect_arch,
    detect_distro,
    detect_family,
    detect_os,
    get_platform_info,
)
