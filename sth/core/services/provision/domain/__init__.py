"""
L1 Domain — ``__init__.py`` re-exports all pure domain functions.

No I/O, no subprocess, no network.
"""

from sth.core.services.provision.domain.action_synthesis import default_actions  # noqa: F401
from sth.core.services.provision.domain.paths import default_root, resolve_paths  # noqa: F401
from sth.core.services.provision.domain.semver import (  # noqa: F401
    highest_semver,
    parse_semver,
    strip_v,
)
from sth.core.services.provision.domain.target import (  # noqa: F401
    contains_fold,
    effective_target,
    ensure_target_supported,
)
from sth.core.services.provision.domain.template import render  # noqa: F401
