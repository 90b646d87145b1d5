"""Resolution of module names to source locations."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lktool.errors import ModuleNotFound
from lktool.modules.registry import (
    RESOLUTION_ORDER,
    ModuleClass,
    ModuleRegistry,
    container_name,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceLocation:
    """Where a module's source lives.

    Several module names may share one location (a multi-module
    repository); they are then checked out into the same container.
    """

    url: str

    @property
    def container(self) -> str:
        """On-disk directory name for this location's checkout."""
        return container_name(self.url)

    def local_path(self, name: str) -> str:
        """Manifest path for module ``name`` inside this checkout."""
        if self.container == name:
            return name
        return f"{self.container}/{name}"

    def __str__(self) -> str:
        return self.url


def normalize_name(name: str) -> str:
    """Strip trailing path separators (shell completion leaves them)."""
    return name.rstrip("/\\")


class ModuleResolver:
    """Resolves module names against a registry file.

    Search order:
    1. [mods] (common/shared modules)
    2. [tops] (root/top modules)

    The registry is re-read on every call so edits to Repo.toml are
    picked up without restarting anything.
    """

    def __init__(self, registry_path: Path | str):
        self.registry_path = Path(registry_path)

    def load_registry(self) -> ModuleRegistry:
        return ModuleRegistry.load(self.registry_path)

    def resolve(
        self,
        name: str,
        classes: tuple[ModuleClass, ...] = RESOLUTION_ORDER,
    ) -> SourceLocation:
        """Resolve a module name to its source location.

        Raises:
            ModuleNotFound: If the name is in none of the searched classes
        """
        name = normalize_name(name)
        registry = self.load_registry()
        entry = registry.get(name, classes)
        if entry is None:
            raise ModuleNotFound(name, [c.value for c in classes])

        logger.debug(
            "Resolved %s -> %s ([%s])", name, entry.location, entry.module_class.value
        )
        return SourceLocation(entry.location)


def resolve_root(
    name: str,
    project_dir: Path | str,
    registry_filename: str = "Repo.toml",
) -> SourceLocation:
    """Resolve a root/top module from the registry bundled with a project.

    Used while scaffolding, before the new project is the working
    directory. Only [tops] is searched.
    """
    resolver = ModuleResolver(Path(project_dir) / registry_filename)
    return resolver.resolve(name, classes=(ModuleClass.TOPS,))
