"""
L4 Execution — ``__init__.py`` re-exports all execution functions.

These functions WRITE to the system: downloads, archive extraction,
file moves, symlinks, shell commands.
"""

from sth.core.services.provision.execution.archive import (  # noqa: F401
    clean_entry_name,
    extract_archive,
    extract_tar_gz,
    extract_zip,
    safe_link_target,
)
from sth.core.services.provision.execution.download import download_file  # noqa: F401
from sth.core.services.provision.execution.shell_runner import run_shell, user_shell  # noqa: F401
from sth.core.services.provision.execution.step_executors import (  # noqa: F401
    ACTION_EXECUTORS,
    execute_action,
    gunzip_file,
    link_points_to,
    parse_mode,
    sha256_file,
)
