"""
L5 Orchestration — ``__init__.py`` re-exports all orchestration functions.
"""

from sth.core.services.provision.orchestration.batch import (  # noqa: F401
    PrefetchError,
    install_all,
    prefetch_artifacts,
)
from sth.core.services.provision.orchestration.orchestrator import (  # noqa: F401
    InstallReport,
    execute_resolved,
    install_recipe,
    is_installed,
    path_hint,
    path_on_env,
)
