"""
Formatting of generated source with ruff.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys

logger = logging.getLogger(__name__)


def ruff_command() -> list[str]:
    """The ruff executable on PATH, else ruff run as a module of this interpreter."""
    ruff = shutil.which("ruff")
    if ruff is None:
        return [sys.executable, "-m", "ruff"]
    return [ruff]


def format_source(source: str) -> str:
    """
    Run ``ruff format -`` over ``source``.

    The unformatted text is returned if ruff is missing or fails.
    """
    command = [*ruff_command(), "format", "--stdin-filename", "generated_flow.py", "-"]
    try:
        result = subprocess.run(
            command,
            input=source,
            capture_output=True,
            text=True,
            timeout=60,
            check=True,
        )
    except (subprocess.CalledProcessError, subprocess.TimeoutExpired, OSError) as e:
        logger.warning("ruff format failed; returning unformatted source: %s", e)
        return source
    return result.stdout
