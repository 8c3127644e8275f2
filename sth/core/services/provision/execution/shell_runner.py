"""
L4 Execution — Shell command runner.

The SINGLE PLACE where recipe shell commands are spawned.  Commands
run through the user's login shell (``$SHELL -lc``, ``/bin/sh`` when
unset) with inherited stdout/stderr.  The wait loop polls the
operation context and terminates the child when it fires.

Recipes that need root say so in the command itself (``sudo ...``);
the runner never elevates on its own.
"""

from __future__ import annotations

import logging
import os
import subprocess
import time

from sth.core.config.settings import SHELL_POLL_INTERVAL
from sth.core.context import OperationContext
from sth.core.errors import OperationCancelled, ProcessError

logger = logging.getLogger(__name__)

DEFAULT_SHELL = "/bin/sh"
_TERMINATE_GRACE = 5.0


def user_shell() -> str:
    return os.environ.get("SHELL", "").strip() or DEFAULT_SHELL


def _stop(proc: subprocess.Popen) -> None:
    proc.terminate()
    try:
        proc.wait(timeout=_TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        proc.kill()
        proc.wait()


def run_shell(cmd: str, ctx: OperationContext, *, system: bool = False) -> None:
    """Run ``cmd`` through the user's shell and wait for it.

    Args:
        cmd: Command string, passed verbatim to ``-lc``.
        ctx: Cancellation / deadline.
        system: Elevation intent, logged only.

    Raises:
        ProcessError: Non-zero exit, or the shell could not be started.
        OperationCancelled: Cancelled while running (child terminated).
    """
    ctx.check()
    shell = user_shell()
    logger.debug("Running via %s -lc%s: %s", shell, " (system)" if system else "", cmd)

    start = time.monotonic()
    try:
        proc = subprocess.Popen([shell, "-lc", cmd])
    except OSError as e:
        logger.error("Cannot start %s: %s", shell, e)
        raise ProcessError(cmd, 127) from e

    try:
        while True:
            try:
                returncode = proc.wait(timeout=SHELL_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                ctx.check()
    except OperationCancelled:
        logger.warning("Cancelled, terminating: %s", cmd)
        _stop(proc)
        raise

    elapsed_ms = int((time.monotonic() - start) * 1000)
    if returncode != 0:
        raise ProcessError(cmd, returncode)
    logger.debug("Shell command finished in %d ms", elapsed_ms)
