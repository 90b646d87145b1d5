"""Build and run the kernel through make."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from lktool.config import Settings
from lktool.errors import BuildFailed

logger = logging.getLogger(__name__)


def run_make(
    project_dir: Path | str,
    target: str | None = None,
    settings: Settings | None = None,
) -> int:
    """Run ``make [target]`` in the project directory.

    Output goes straight to the terminal; the call blocks until make
    exits.

    Raises:
        BuildFailed: make is missing or exits non-zero
    """
    settings = settings or Settings()
    cmd = [settings.make_executable]
    if target:
        cmd.append(target)

    logger.debug("Running %s in %s", " ".join(cmd), project_dir)
    try:
        completed = subprocess.run(cmd, cwd=project_dir)
    except FileNotFoundError as e:
        raise BuildFailed(f"{settings.make_executable} not found: {e}") from e

    if completed.returncode != 0:
        raise BuildFailed(
            f"{' '.join(cmd)} exited with status {completed.returncode}",
            returncode=completed.returncode,
        )
    return completed.returncode
