"""Filesystem port used by the lifecycle controller and scaffolding."""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class FileSystem(ABC):
    @abstractmethod
    def exists(self, path: Path) -> bool: ...

    @abstractmethod
    def remove_tree(self, path: Path) -> None: ...

    @abstractmethod
    def copy_tree(self, src: Path, dest: Path) -> None: ...


class LocalFileSystem(FileSystem):
    """FileSystem over the real disk."""

    def exists(self, path: Path) -> bool:
        return Path(path).exists()

    def remove_tree(self, path: Path) -> None:
        logger.debug("Removing %s", path)
        shutil.rmtree(path)

    def copy_tree(self, src: Path, dest: Path) -> None:
        logger.debug("Copying %s -> %s", src, dest)
        shutil.copytree(src, dest)
