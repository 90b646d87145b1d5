"""Module override management.

This package implements the local override workflow:
- registry.py: Load Repo.toml (module name -> source location)
- resolver.py: Resolve module names, mods before tops
- manifest.py: Read/rewrite the [patch] override table in Cargo.toml
- vcs.py: Version-control port and git implementation
- filesystem.py: Filesystem port
- checker.py: Clean/pushed checks on a local checkout
- lifecycle.py: get/put state machine
"""

from lktool.modules.registry import (
    ModuleClass,
    ModuleEntry,
    ModuleRegistry,
    container_name,
)
from lktool.modules.resolver import ModuleResolver, SourceLocation, resolve_root
from lktool.modules.manifest import ManifestStore, OverrideEntry
from lktool.modules.vcs import CommandResult, GitVersionControl, VersionControl
from lktool.modules.filesystem import FileSystem, LocalFileSystem
from lktool.modules.checker import CheckResult, WorkingCopyChecker
from lktool.modules.lifecycle import (
    OverrideController,
    OverrideOutcome,
    OverrideResult,
)

__all__ = [
    "ModuleClass",
    "ModuleEntry",
    "ModuleRegistry",
    "container_name",
    "ModuleResolver",
    "SourceLocation",
    "resolve_root",
    "ManifestStore",
    "OverrideEntry",
    "CommandResult",
    "GitVersionControl",
    "VersionControl",
    "FileSystem",
    "LocalFileSystem",
    "CheckResult",
    "WorkingCopyChecker",
    "OverrideController",
    "OverrideOutcome",
    "OverrideResult",
]
