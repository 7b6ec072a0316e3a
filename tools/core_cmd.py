"""tools/core_cmd.py

Subprocess helpers for the external tools this workflow drives
(``docker compose`` and Maven).

* :func:`which_or_raise` - locate an executable or fail with FileNotFoundError.
* :func:`run_cmd` - run a command quietly and return a :class:`CmdResult`.
* :func:`mask_secrets` - render a command line with credential values hidden.

Nothing here decides whether a result is a failure; that is the job of
:class:`workflow.executor.RemoteCallExecutor`.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

# exit status used when a command is killed for running past its timeout
TIMEOUT_EXIT_CODE = 124

_SECRET_ARG = re.compile(r"^(-D(?:sonar\.token|sonar\.login|sonar\.password)=)(.+)$")


@dataclass(frozen=True)
class CmdResult:
    exit_code: int
    elapsed_seconds: float
    command_str: str
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def mask_secrets(cmd: Sequence[str]) -> str:
    """Join ``cmd`` for display, replacing credential values with ``****``."""
    return " ".join(_SECRET_ARG.sub(r"\1****", part) for part in cmd)


def which_or_raise(bin_name: str, fallbacks: Optional[Iterable[str]] = None) -> str:
    """Return the absolute path of ``bin_name``.

    PATH is searched first, then each executable path in ``fallbacks``
    (useful for Homebrew or /usr/local installs missing from a CI PATH).
    """
    found = shutil.which(bin_name)
    if found:
        return found

    tried = list(fallbacks or [])
    for candidate in tried:
        if Path(candidate).is_file() and os.access(candidate, os.X_OK):
            return candidate

    raise FileNotFoundError(f"Executable '{bin_name}' not found on PATH (also tried: {tried or 'nothing'}).")


def run_cmd(cmd: List[str], *, cwd: Optional[Path] = None, timeout_seconds: float = 0) -> CmdResult:
    """Run ``cmd`` (no shell) with stdout/stderr captured and not echoed.

    Non-zero exits are returned, not raised. A command that outlives
    ``timeout_seconds`` (0 means no limit) is reported as exit code 124.
    Execution errors such as a missing binary still raise.
    """
    shown = mask_secrets(cmd)
    logger.debug("run: %s (cwd=%s)", shown, cwd)
    started = time.monotonic()

    try:
        proc = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd else None,
            text=True,
            capture_output=True,
            timeout=timeout_seconds or None,
        )
    except subprocess.TimeoutExpired as e:
        logger.debug("timed out after %ss: %s", timeout_seconds, shown)
        return CmdResult(
            exit_code=TIMEOUT_EXIT_CODE,
            elapsed_seconds=time.monotonic() - started,
            command_str=shown,
            stdout=e.stdout if isinstance(e.stdout, str) else "",
            stderr=e.stderr if isinstance(e.stderr, str) else "",
        )

    result = CmdResult(
        exit_code=proc.returncode,
        elapsed_seconds=time.monotonic() - started,
        command_str=shown,
        stdout=proc.stdout or "",
        stderr=proc.stderr or "",
    )
    logger.debug("exit %s after %.1fs: %s", result.exit_code, result.elapsed_seconds, shown)
    return result
