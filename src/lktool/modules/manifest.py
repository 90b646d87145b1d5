"""Build manifest (Cargo.toml) override table store.

The override table lives under ``[patch]`` and is keyed by source
location, each sub-table binding module names to local paths:

    [patch."https://example/repo-x"]
    alpha = { path = "repo-x/alpha" }
    beta = { path = "repo-x/beta" }

Design notes:
- Every mutation is whole-file: parse, change the in-memory document,
  serialize, write. Comments and formatting outside the structured model
  are NOT preserved across a write.
- Writes go to a temporary file next to the manifest which is then
  renamed over it, so a failed write leaves the previous content intact.
- No file locking. Two lktool processes editing the same manifest at the
  same time can lose one of the updates.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import tomli_w

from lktool.errors import ManifestParseError, ManifestWriteError, OverrideTableMissing

logger = logging.getLogger(__name__)

DEFAULT_OVERRIDE_KEY = "patch"


@dataclass
class OverrideEntry:
    """All local bindings for one source location."""

    location: str
    bindings: dict[str, str] = field(default_factory=dict)

    def path_for(self, name: str) -> str | None:
        return self.bindings.get(name)

    @classmethod
    def from_table(cls, location: str, table: dict) -> "OverrideEntry":
        bindings = {}
        for name, spec in table.items():
            if isinstance(spec, dict) and "path" in spec:
                bindings[name] = spec["path"]
        return cls(location=location, bindings=bindings)


class ManifestStore:
    """Reads and rewrites one manifest file."""

    def __init__(self, path: Path | str, override_key: str = DEFAULT_OVERRIDE_KEY):
        self.path = Path(path)
        self.override_key = override_key

    def load(self) -> dict[str, Any]:
        """Parse the manifest into a plain dict.

        Raises:
            ManifestParseError: If the file is missing, unreadable or not
                valid TOML
        """
        if not self.path.exists():
            raise ManifestParseError(f"manifest not found: {self.path}")
        try:
            with open(self.path, "rb") as f:
                return tomllib.load(f)
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as e:
            raise ManifestParseError(f"invalid TOML in {self.path}: {e}") from e
        except OSError as e:
            raise ManifestParseError(f"cannot read {self.path}: {e}") from e

    def save(self, document: dict[str, Any]) -> None:
        """Serialize and atomically replace the manifest.

        Raises:
            ManifestWriteError: If the file cannot be written
        """
        try:
            content = tomli_w.dumps(document)
        except (TypeError, ValueError) as e:
            raise ManifestWriteError(f"cannot serialize {self.path}: {e}") from e

        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(content)
            if self.path.exists():
                shutil.copymode(self.path, tmp_name)
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ManifestWriteError(f"cannot write {self.path}: {e}") from e

        logger.debug("Wrote manifest %s", self.path)

    def _override_table(self, document: dict[str, Any]) -> dict[str, Any] | None:
        table = document.get(self.override_key)
        if table is None:
            return None
        if not isinstance(table, dict):
            raise ManifestParseError(
                f"[{self.override_key}] in {self.path} is not a table"
            )
        return table

    # ------------------------------------------------------------------
    # Override table
    # ------------------------------------------------------------------

    def has_override_table(self) -> bool:
        return self._override_table(self.load()) is not None

    def overrides(self) -> list[OverrideEntry]:
        """All override entries, in manifest order."""
        table = self._override_table(self.load()) or {}
        return [
            OverrideEntry.from_table(location, sub)
            for location, sub in table.items()
            if isinstance(sub, dict)
        ]

    def get_override(self, location: str) -> OverrideEntry | None:
        table = self._override_table(self.load()) or {}
        sub = table.get(location)
        if not isinstance(sub, dict):
            return None
        return OverrideEntry.from_table(location, sub)

    def add_override(self, name: str, location: str, local_path: str) -> None:
        """Bind ``name`` to ``local_path`` under ``location``.

        Creates the override table and the location sub-table if missing;
        an existing binding for ``name`` is overwritten.
        """
        document = self.load()
        table = self._override_table(document)
        if table is None:
            table = document[self.override_key] = {}

        sub = table.setdefault(location, {})
        sub[name] = {"path": local_path}

        self.save(document)
        logger.info("Added override %s -> %s (%s)", name, local_path, location)

    def remove_override(self, location: str) -> OverrideEntry | None:
        """Drop every binding for ``location``.

        Returns the removed entry, or None when the override table exists
        but holds nothing for ``location`` (the manifest is then left
        untouched). The override table itself is dropped once it is empty.

        Raises:
            OverrideTableMissing: If the manifest has no override table
        """
        document = self.load()
        table = self._override_table(document)
        if table is None:
            raise OverrideTableMissing(
                f"no [{self.override_key}] table in {self.path}; nothing is overridden"
            )

        sub = table.pop(location, None)
        if sub is None:
            return None

        if not table:
            del document[self.override_key]

        self.save(document)
        logger.info("Removed overrides for %s", location)
        return OverrideEntry.from_table(location, sub)

    # ------------------------------------------------------------------
    # Package metadata (used when scaffolding)
    # ------------------------------------------------------------------

    def add_dependency(self, name: str, spec: dict[str, Any] | str) -> None:
        document = self.load()
        deps = document.setdefault("dependencies", {})
        deps[name] = spec
        self.save(document)

    def set_package_name(self, name: str) -> None:
        document = self.load()
        package = document.setdefault("package", {})
        package["name"] = name
        self.save(document)
