"""Version-control port and its git implementation.

The lifecycle controller only talks to VersionControl, so tests can swap
in a fake and never spawn git or touch the network.
"""

from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from lktool.errors import CheckoutFailed, VcsUnavailable

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Exit status and captured output of an external command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """Combined output, stdout first."""
        return "\n".join(p for p in (self.stdout.strip(), self.stderr.strip()) if p)


class VersionControl(ABC):
    """Capabilities lktool needs from a version-control tool."""

    @abstractmethod
    def clone(self, location: str, dest: Path) -> None:
        """Check ``location`` out into ``dest``.

        Raises:
            CheckoutFailed: If the checkout does not complete
        """

    @abstractmethod
    def status(self, path: Path) -> str:
        """Short status of the working copy; empty means clean.

        Raises:
            VcsUnavailable: If the query cannot be run
        """

    @abstractmethod
    def diff_upstream(self, path: Path) -> str:
        """Diff-stat of commits not yet on the upstream tracking branch.

        Raises:
            VcsUnavailable: If the query cannot be run
        """


class GitVersionControl(VersionControl):
    """VersionControl backed by the git CLI."""

    def __init__(self, executable: str = "git", clone_depth: int | None = None):
        self.executable = executable
        self.clone_depth = clone_depth

    def _run(self, args: list[str], cwd: Path | None = None) -> CommandResult:
        cmd = [self.executable, *args]
        logger.debug("Running %s (cwd=%s)", " ".join(cmd), cwd)
        completed = subprocess.run(
            cmd,
            cwd=cwd,
            capture_output=True,
            text=True,
        )
        return CommandResult(completed.returncode, completed.stdout, completed.stderr)

    def clone(self, location: str, dest: Path) -> None:
        args = ["clone"]
        if self.clone_depth:
            args.extend(["--depth", str(self.clone_depth)])
        args.extend([location, str(dest)])

        try:
            result = self._run(args, cwd=dest.parent)
        except FileNotFoundError as e:
            raise CheckoutFailed(f"{self.executable} not found: {e}") from e

        if not result.ok:
            raise CheckoutFailed(
                f"git clone {location} exited with status {result.returncode}",
                returncode=result.returncode,
                output=result.output,
            )

    def _query(self, args: list[str], path: Path) -> str:
        if not path.is_dir():
            raise VcsUnavailable(f"{path} is not a directory")
        try:
            result = self._run(args, cwd=path)
        except FileNotFoundError as e:
            raise VcsUnavailable(f"{self.executable} not found: {e}") from e

        if not result.ok:
            raise VcsUnavailable(
                f"git {args[0]} failed in {path} (status {result.returncode})",
                output=result.output,
            )
        return result.stdout

    def status(self, path: Path) -> str:
        return self._query(["status", "--short"], path)

    def diff_upstream(self, path: Path) -> str:
        # Three-dot: only what HEAD has that the upstream does not
        return self._query(["diff", "--stat", "@{upstream}...HEAD"], path)
