"""Shared fixtures: a throwaway project and a fake git."""

from __future__ import annotations

import tomllib
from pathlib import Path

import pytest

from lktool.errors import CheckoutFailed, VcsUnavailable
from lktool.modules.filesystem import LocalFileSystem
from lktool.modules.lifecycle import OverrideController
from lktool.modules.manifest import ManifestStore
from lktool.modules.resolver import ModuleResolver
from lktool.modules.vcs import VersionControl

REPO_TOML = """\
[mods]
alpha = "https://example/repo-x"
beta = "https://example/repo-x"
gamma = "https://example/gamma.git"
shared = "https://example/shared-mods"

[tops]
top_one = "https://example/top_one"
shared = "https://example/shared-tops"
"""

CARGO_TOML = """\
[package]
name = "demo"
version = "0.1.0"

[dependencies]
alpha = { git = "https://example/repo-x" }
"""


class FakeVersionControl(VersionControl):
    """In-memory git stand-in.

    Clones create the container directory with one subdirectory per
    module; status/diff answers are set per container name.
    """

    def __init__(self):
        self.clones: list[tuple[str, Path]] = []
        self.status_output: dict[str, str] = {}
        self.diff_output: dict[str, str] = {}
        self.fail_clone: int | None = None
        self.unavailable = False

    def clone(self, location: str, dest: Path) -> None:
        if self.fail_clone is not None:
            raise CheckoutFailed(
                f"git clone {location} exited with status {self.fail_clone}",
                returncode=self.fail_clone,
                output="fatal: repository not found",
            )
        self.clones.append((location, dest))
        dest.mkdir()
        (dest / ".git").mkdir()

    def status(self, path: Path) -> str:
        if self.unavailable:
            raise VcsUnavailable(f"{path} is not a git repository")
        return self.status_output.get(path.name, "")

    def diff_upstream(self, path: Path) -> str:
        if self.unavailable:
            raise VcsUnavailable(f"no upstream for {path}")
        return self.diff_output.get(path.name, "")


class BrokenDeleteFileSystem(LocalFileSystem):
    def remove_tree(self, path: Path) -> None:
        raise PermissionError(f"Permission denied: {path}")


def read_toml(path: Path) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)


@pytest.fixture
def project(tmp_path) -> Path:
    """Project root holding Repo.toml and Cargo.toml."""
    root = tmp_path / "proj"
    root.mkdir()
    (root / "Repo.toml").write_text(REPO_TOML)
    (root / "Cargo.toml").write_text(CARGO_TOML)
    return root


@pytest.fixture
def fake_vcs() -> FakeVersionControl:
    return FakeVersionControl()


@pytest.fixture
def controller(project, fake_vcs) -> OverrideController:
    return OverrideController(
        project_dir=project,
        resolver=ModuleResolver(project / "Repo.toml"),
        manifest=ManifestStore(project / "Cargo.toml"),
        vcs=fake_vcs,
    )
