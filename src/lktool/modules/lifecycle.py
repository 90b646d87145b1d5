"""Override lifecycle: bind (get) and unbind (put) local module copies.

Per source location the state is either Unbound or Bound:

    Unbound --get--> Bound    clone, then add the manifest override
    Bound   --put--> Unbound  clean + pushed checks, then remove the
                              override and delete the checkout

Failure policy:
- Every failure raises an LktoolError subclass; nothing is retried.
- get is not transactional. A checkout left behind by an interrupted get
  is reported as already bound on the next get.
- Modules sharing a repository share one checkout. A get for a second
  module of an already bound repository only adds its manifest binding.
- put removes the manifest entry first and the directory second. If the
  delete fails, InconsistentOverrideState is raised right away. A later put
  finds the checkout with no override (or no override table at all) and
  raises InconsistentOverrideState again. Nothing is repaired automatically.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from lktool.config import Settings
from lktool.errors import (
    InconsistentOverrideState,
    UnpushedChanges,
    WorkingCopyDirty,
)
from lktool.modules.checker import WorkingCopyChecker
from lktool.modules.filesystem import FileSystem, LocalFileSystem
from lktool.modules.manifest import ManifestStore
from lktool.modules.resolver import ModuleResolver, SourceLocation, normalize_name
from lktool.modules.vcs import GitVersionControl, VersionControl

logger = logging.getLogger(__name__)


class OverrideOutcome(Enum):
    BOUND = "bound"
    ALREADY_BOUND = "already_bound"
    UNBOUND = "unbound"
    ALREADY_UNBOUND = "already_unbound"


@dataclass
class OverrideResult:
    """Successful (or informational) outcome of get/put."""

    outcome: OverrideOutcome
    name: str
    location: str
    container: str
    message: str
    local_path: str = ""
    removed: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        """True if the manifest and disk were modified."""
        return self.outcome in (OverrideOutcome.BOUND, OverrideOutcome.UNBOUND)

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome.value,
            "name": self.name,
            "location": self.location,
            "container": self.container,
            "local_path": self.local_path,
            "message": self.message,
            "removed": self.removed,
            "warnings": self.warnings,
        }


class OverrideController:
    """Runs the get/put state machine for one project directory.

    Usage:
        controller = OverrideController.for_project(Path.cwd())
        controller.get("alpha")
        ...
        controller.put("alpha")
    """

    def __init__(
        self,
        project_dir: Path | str,
        resolver: ModuleResolver,
        manifest: ManifestStore,
        vcs: VersionControl,
        fs: FileSystem | None = None,
    ):
        self.project_dir = Path(project_dir)
        self.resolver = resolver
        self.manifest = manifest
        self.vcs = vcs
        self.fs = fs or LocalFileSystem()
        self.checker = WorkingCopyChecker(vcs)

    @classmethod
    def for_project(
        cls,
        project_dir: Path | str,
        settings: Settings | None = None,
    ) -> "OverrideController":
        """Wire the controller with the real git and filesystem."""
        settings = settings or Settings()
        project_dir = Path(project_dir)
        return cls(
            project_dir=project_dir,
            resolver=ModuleResolver(settings.registry_path(project_dir)),
            manifest=ManifestStore(
                settings.manifest_path(project_dir),
                override_key=settings.override_key,
            ),
            vcs=GitVersionControl(
                settings.git_executable, clone_depth=settings.clone_depth
            ),
        )

    def container_path(self, location: SourceLocation) -> Path:
        return self.project_dir / location.container

    def get(self, name: str) -> OverrideResult:
        """Check a module out locally and point the manifest at it.

        Raises:
            ModuleNotFound: Name not in the registry
            InconsistentOverrideState: Manifest override without a checkout
            CheckoutFailed: Clone did not complete
            ManifestParseError, ManifestWriteError: Manifest problems
        """
        name = normalize_name(name)
        location = self.resolver.resolve(name)
        container = self.container_path(location)
        local_path = location.local_path(name)

        if self.fs.exists(container):
            entry = self.manifest.get_override(location.url)
            if entry is not None and entry.path_for(name) is None:
                # Another module of the same repository is already bound;
                # reuse its checkout.
                self.manifest.add_override(name, location.url, local_path)
                logger.info("Bound %s -> %s (existing checkout)", name, local_path)
                return OverrideResult(
                    outcome=OverrideOutcome.BOUND,
                    name=name,
                    location=location.url,
                    container=location.container,
                    local_path=local_path,
                    message=(
                        f"'{name}' is now overridden by existing "
                        f"'{location.container}'"
                    ),
                )

            warnings = []
            if entry is None:
                warning = (
                    f"'{location.container}' exists but the manifest has no "
                    "override for it; a previous get may have been interrupted"
                )
                logger.warning(warning)
                warnings.append(warning)
            return OverrideResult(
                outcome=OverrideOutcome.ALREADY_BOUND,
                name=name,
                location=location.url,
                container=location.container,
                local_path=local_path,
                message=f"'{location.container}' already exists",
                warnings=warnings,
            )

        if self.manifest.get_override(location.url) is not None:
            raise InconsistentOverrideState(
                f"manifest overrides {location.url} but '{location.container}' "
                "is missing on disk"
            )

        logger.info("Checking out %s into %s", location.url, container)
        self.vcs.clone(location.url, container)

        self.manifest.add_override(name, location.url, local_path)
        logger.info("Bound %s -> %s", name, local_path)

        return OverrideResult(
            outcome=OverrideOutcome.BOUND,
            name=name,
            location=location.url,
            container=location.container,
            local_path=local_path,
            message=f"'{name}' is now overridden by '{location.container}'",
        )

    def put(self, name: str) -> OverrideResult:
        """Retire a local override once its work is committed and pushed.

        Raises:
            ModuleNotFound: Name not in the registry
            WorkingCopyDirty: Uncommitted changes in the checkout
            UnpushedChanges: Local commits missing from upstream
            VcsUnavailable: git could not answer the checks
            InconsistentOverrideState: Manifest and disk disagree, including
                a checkout left behind with nothing overridden
        """
        name = normalize_name(name)
        location = self.resolver.resolve(name)
        container = self.container_path(location)

        if not self.fs.exists(container):
            if self.manifest.get_override(location.url) is not None:
                raise InconsistentOverrideState(
                    f"manifest overrides {location.url} but "
                    f"'{location.container}' is missing on disk"
                )
            return OverrideResult(
                outcome=OverrideOutcome.ALREADY_UNBOUND,
                name=name,
                location=location.url,
                container=location.container,
                message=f"'{location.container}' does not exist",
            )

        clean = self.checker.check_clean(container)
        if not clean.ok:
            raise WorkingCopyDirty(
                f"'{location.container}' has uncommitted changes",
                output=clean.output,
            )

        pushed = self.checker.check_pushed(container)
        if not pushed.ok:
            raise UnpushedChanges(
                f"'{location.container}' has commits not pushed upstream",
                output=pushed.output,
            )

        if not self.manifest.has_override_table():
            # A checkout with nothing overridden is left over from an
            # interrupted get or put
            raise InconsistentOverrideState(
                f"'{location.container}' exists but {self.manifest.path.name} "
                "overrides nothing"
            )

        removed = self.manifest.remove_override(location.url)
        if removed is None:
            raise InconsistentOverrideState(
                f"'{location.container}' exists but the manifest has no "
                f"override for {location.url}"
            )

        try:
            self.fs.remove_tree(container)
        except OSError as e:
            raise InconsistentOverrideState(
                f"override for {location.url} was removed from the manifest "
                f"but deleting '{location.container}' failed: {e}"
            ) from e

        logger.info("Unbound %s (%s)", location.url, ", ".join(removed.bindings))

        return OverrideResult(
            outcome=OverrideOutcome.UNBOUND,
            name=name,
            location=location.url,
            container=location.container,
            message=f"removed '{location.container}' and its overrides",
            removed=sorted(removed.bindings),
        )

    def status(self) -> list[dict]:
        """Active overrides with the on-disk state of their checkouts.

        Also reports registry locations whose container is on disk with no
        manifest override (left behind by an interrupted get or put).
        """
        rows = []
        seen = set()
        for entry in self.manifest.overrides():
            location = SourceLocation(entry.location)
            present = self.fs.exists(self.container_path(location))
            seen.add(entry.location)
            rows.append(
                {
                    "location": entry.location,
                    "container": location.container,
                    "bindings": dict(entry.bindings),
                    "present": present,
                    "consistent": present,
                }
            )

        for registry_entry in self.resolver.load_registry().entries():
            if registry_entry.location in seen:
                continue
            location = SourceLocation(registry_entry.location)
            seen.add(registry_entry.location)
            if self.fs.exists(self.container_path(location)):
                rows.append(
                    {
                        "location": location.url,
                        "container": location.container,
                        "bindings": {},
                        "present": True,
                        "consistent": False,
                    }
                )
        return rows
