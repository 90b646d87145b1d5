"""Module registry loading.

Loads Repo.toml, the registry document that maps module names to the
source location (repository address) they are fetched from.

Design assumptions:
- Repo.toml lives at the project root
- [mods] holds common/shared modules, [tops] holds root/top modules
- Values are bare source location strings
- Other tables are ignored, as are non-string values inside known tables
- The registry is read fresh on every load; nothing is cached globally
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from lktool.errors import RegistryNotFound, RegistryParseError

logger = logging.getLogger(__name__)


class ModuleClass(Enum):
    """Registry module classes, in resolution priority order."""

    MODS = "mods"
    TOPS = "tops"


# mods win over tops when a name appears in both
RESOLUTION_ORDER = (ModuleClass.MODS, ModuleClass.TOPS)


def container_name(location: str) -> str:
    """Directory name a source location is checked out into.

    Last path segment of the location, ignoring trailing separators and a
    ``.git`` suffix: ``https://host/org/repo-x.git`` -> ``repo-x``.
    """
    stripped = location.rstrip("/")
    segment = stripped.rsplit("/", 1)[-1]
    # scp-style git addresses: git@host:repo
    segment = segment.rsplit(":", 1)[-1]
    if segment.endswith(".git"):
        segment = segment[: -len(".git")]
    return segment


@dataclass
class ModuleEntry:
    """A single name -> location entry from the registry."""

    name: str
    location: str
    module_class: ModuleClass

    @property
    def container(self) -> str:
        return container_name(self.location)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "location": self.location,
            "class": self.module_class.value,
            "container": self.container,
        }


@dataclass
class ModuleRegistry:
    """All registry entries, grouped by module class."""

    tables: dict[ModuleClass, dict[str, str]] = field(default_factory=dict)
    path: Path | None = None

    def get(
        self,
        name: str,
        classes: tuple[ModuleClass, ...] = RESOLUTION_ORDER,
    ) -> ModuleEntry | None:
        """Look a name up in the given classes; first match wins."""
        for module_class in classes:
            location = self.tables.get(module_class, {}).get(name)
            if location is not None:
                return ModuleEntry(name, location, module_class)
        return None

    def entries(self, module_class: ModuleClass | None = None) -> list[ModuleEntry]:
        """List entries, optionally restricted to one class."""
        classes = (module_class,) if module_class else RESOLUTION_ORDER
        result = []
        for cls_ in classes:
            for name, location in self.tables.get(cls_, {}).items():
                result.append(ModuleEntry(name, location, cls_))
        return result

    @classmethod
    def from_dict(cls, data: dict, path: Path | None = None) -> "ModuleRegistry":
        tables: dict[ModuleClass, dict[str, str]] = {}
        for module_class in ModuleClass:
            raw = data.get(module_class.value, {})
            if not isinstance(raw, dict):
                raise RegistryParseError(
                    f"[{module_class.value}] must be a table in {path or 'registry'}"
                )
            table = {}
            for name, location in raw.items():
                if not isinstance(location, str):
                    logger.debug(
                        "Skipping non-string registry entry %s.%s",
                        module_class.value,
                        name,
                    )
                    continue
                table[name] = location
            tables[module_class] = table
        return cls(tables=tables, path=path)

    @classmethod
    def load(cls, path: Path | str) -> "ModuleRegistry":
        """Load the registry from a TOML file.

        Raises:
            RegistryNotFound: If the file does not exist
            RegistryParseError: If the file is unreadable or not valid TOML
        """
        path = Path(path)
        if not path.exists():
            raise RegistryNotFound(f"registry not found: {path}")

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise RegistryParseError(f"invalid TOML in {path}: {e}") from e
        except OSError as e:
            raise RegistryParseError(f"cannot read {path}: {e}") from e

        logger.debug("Loaded registry %s", path)
        return cls.from_dict(data, path=path)
