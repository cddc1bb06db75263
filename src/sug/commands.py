#!/usr/bin/env python

import os
import shutil
import subprocess
from typing import Mapping, Optional, Sequence

from .constants import PROBE_TIMEOUT
from .logger import logger


def run_command(args: Sequence[str], timeout: float = PROBE_TIMEOUT,
                env: Optional[Mapping[str, str]] = None,
                cwd: Optional[str] = None) -> Optional[str]:
    """Run a short probe command and return its stdout, or None on any failure.

    Probes feed optional context only, so failures are logged and swallowed.
    """
    if not args:
        return None

    try:
        result = subprocess.run(
            list(args),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=dict(env) if env is not None else None,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
        )
    except (OSError, subprocess.SubprocessError) as e:
        logger.debug(f"Probe failed: {' '.join(args)}: {e}")
        return None

    if result.returncode != 0:
        logger.debug(f"Probe exited {result.returncode}: {' '.join(args)}")
        return None

    return result.stdout


def command_exists(name: str) -> bool:
    """Check whether an executable is on PATH"""
    return shutil.which(name) is not None


def get_current_directory() -> str:
    """Current working directory, falling back to $PWD if it was removed"""
    try:
        return os.getcwd()
    except OSError:
        return os.environ.get("PWD", "")
