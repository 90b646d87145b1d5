"""Configuration settings for lktool."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

# Bundled project template, copied by `lktool new`
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates" / "proj"


@dataclass
class Settings:
    """Tool settings.

    File names are relative to the project root. Environment overrides:
    LKTOOL_TEMPLATE_DIR, LKTOOL_GIT, LKTOOL_MAKE, LKTOOL_CLONE_DEPTH.
    """

    # Project layout
    registry_filename: str = "Repo.toml"
    manifest_filename: str = "Cargo.toml"

    # Manifest table holding local overrides
    override_key: str = "patch"

    # External tools
    git_executable: str = "git"
    make_executable: str = "make"
    clone_depth: int | None = None

    # Scaffolding
    template_dir: Path = field(default_factory=lambda: DEFAULT_TEMPLATE_DIR)

    def registry_path(self, project_dir: Path) -> Path:
        return Path(project_dir) / self.registry_filename

    def manifest_path(self, project_dir: Path) -> Path:
        return Path(project_dir) / self.manifest_filename

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings, applying LKTOOL_* environment overrides."""
        settings = cls()

        template_dir = os.environ.get("LKTOOL_TEMPLATE_DIR")
        if template_dir:
            settings.template_dir = Path(template_dir)

        git = os.environ.get("LKTOOL_GIT")
        if git:
            settings.git_executable = git

        make = os.environ.get("LKTOOL_MAKE")
        if make:
            settings.make_executable = make

        depth = os.environ.get("LKTOOL_CLONE_DEPTH")
        if depth:
            try:
                settings.clone_depth = int(depth)
            except ValueError:
                logger.warning("Ignoring LKTOOL_CLONE_DEPTH=%r: not an integer", depth)
            else:
                if settings.clone_depth <= 0:
                    settings.clone_depth = None

        return settings
