"""Project scaffolding for `lktool new`."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lktool.config import Settings
from lktool.errors import (
    LktoolError,
    ProjectCreateFailed,
    ProjectExists,
    TemplateNotFound,
)
from lktool.modules.filesystem import FileSystem, LocalFileSystem
from lktool.modules.manifest import ManifestStore
from lktool.modules.resolver import resolve_root

logger = logging.getLogger(__name__)


@dataclass
class CreatedProject:
    name: str
    path: Path
    root: str
    root_location: str


def _discard(project_dir: Path, fs: FileSystem) -> None:
    """Remove a half-created project directory."""
    if not fs.exists(project_dir):
        return
    try:
        fs.remove_tree(project_dir)
    except OSError as e:
        logger.warning("Could not remove %s: %s", project_dir, e)


def create_project(
    name: str,
    root: str,
    parent_dir: Path | str | None = None,
    settings: Settings | None = None,
    fs: FileSystem | None = None,
) -> CreatedProject:
    """Create a new kernel project from the bundled template.

    Copies the template tree into ``parent_dir/name``, then records the
    root component as a git dependency in the new manifest. The root is
    looked up in the registry shipped with the template.

    Raises:
        ProjectExists: Target directory already exists
        TemplateNotFound: Template directory is missing
        ProjectCreateFailed: Template could not be copied
        ModuleNotFound: ``root`` is not a top module in the registry
    """
    settings = settings or Settings()
    fs = fs or LocalFileSystem()
    parent_dir = Path(parent_dir) if parent_dir else Path.cwd()
    project_dir = parent_dir / name

    if fs.exists(project_dir):
        raise ProjectExists(f"{project_dir} already exists")
    if not fs.exists(settings.template_dir):
        raise TemplateNotFound(f"template not found: {settings.template_dir}")

    logger.info("Creating project %s from %s", project_dir, settings.template_dir)
    try:
        fs.copy_tree(settings.template_dir, project_dir)
    except OSError as e:
        _discard(project_dir, fs)
        raise ProjectCreateFailed(f"cannot create {project_dir}: {e}") from e

    try:
        location = resolve_root(root, project_dir, settings.registry_filename)

        manifest = ManifestStore(
            settings.manifest_path(project_dir), override_key=settings.override_key
        )
        manifest.set_package_name(name)
        manifest.add_dependency(root, {"git": location.url})
    except LktoolError:
        _discard(project_dir, fs)
        raise

    return CreatedProject(
        name=name, path=project_dir, root=root, root_location=location.url
    )
