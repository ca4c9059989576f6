"""Running child programs and collecting their exit status."""

from __future__ import annotations

import subprocess
from typing import Sequence

__all__ = ["exec_child"]

_EXEC_FAILED = 0xFF


def exec_child(args: Sequence[str], quiet: bool = False) -> int:
    """Run ``args`` (looked up on PATH), wait for it and return its exit status.

    With ``quiet`` the child's stdout and stderr are discarded. A program
    that cannot be started reports status 255; a child killed by a signal
    reports 0.
    """
    args = list(args)
    if not args:
        raise ValueError("no program to run")
    output = subprocess.DEVNULL if quiet else None
    try:
        completed = subprocess.run(args, stdout=output, stderr=output, check=False)
    except OSError:
        return _EXEC_FAILED
    if completed.returncode < 0:
        return 0
    return completed.returncode & 0xFF