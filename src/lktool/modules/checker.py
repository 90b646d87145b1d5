"""Working-copy safety checks run before an override is retired."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lktool.modules.vcs import VersionControl

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Outcome of one check; ``output`` is the raw tool text."""

    ok: bool
    output: str = ""


class WorkingCopyChecker:
    """Read-only clean/pushed queries against a local container.

    Any non-empty output from the underlying query fails the check. Errors
    from the version-control port (VcsUnavailable) propagate unchanged.
    """

    def __init__(self, vcs: VersionControl):
        self.vcs = vcs

    def check_clean(self, path: Path) -> CheckResult:
        """True when there are no uncommitted modifications."""
        output = self.vcs.status(path)
        ok = not output.strip()
        if not ok:
            logger.info("Working copy %s is dirty", path)
        return CheckResult(ok=ok, output=output)

    def check_pushed(self, path: Path) -> CheckResult:
        """True when every local commit is on the upstream branch."""
        output = self.vcs.diff_upstream(path)
        ok = not output.strip()
        if not ok:
            logger.info("Working copy %s has unpushed commits", path)
        return CheckResult(ok=ok, output=output)
