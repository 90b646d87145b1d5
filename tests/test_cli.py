"""CLI tests via click's CliRunner."""

from __future__ import annotations

import json
import shutil

import pytest
from click.testing import CliRunner

from conftest import read_toml
from lktool.__main__ import cli

REPO_X = "https://example/repo-x"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def git(monkeypatch, fake_vcs):
    """Route the CLI's git through the fake."""
    monkeypatch.setattr(
        "lktool.modules.lifecycle.GitVersionControl",
        lambda *args, **kwargs: fake_vcs,
    )
    return fake_vcs


def invoke(runner, project, *args):
    return runner.invoke(cli, ["--project-dir", str(project), *args])


class TestOverrideCommands:
    def test_get_put(self, runner, project, git):
        result = invoke(runner, project, "get", "alpha")
        assert result.exit_code == 0, result.output
        assert "repo-x" in result.output
        assert REPO_X in read_toml(project / "Cargo.toml")["patch"]

        result = invoke(runner, project, "put", "alpha")
        assert result.exit_code == 0, result.output
        assert "patch" not in read_toml(project / "Cargo.toml")
        assert not (project / "repo-x").exists()

    def test_get_twice(self, runner, project, git):
        invoke(runner, project, "get", "alpha")
        result = invoke(runner, project, "get", "alpha")

        assert result.exit_code == 0
        assert "already exists" in result.output

    def test_get_put_json(self, runner, project, git):
        result = invoke(runner, project, "get", "alpha", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["outcome"] == "bound"
        assert payload["local_path"] == "repo-x/alpha"

        result = invoke(runner, project, "put", "alpha", "--json")

        assert result.exit_code == 0, result.output
        payload = json.loads(result.output)
        assert payload["outcome"] == "unbound"
        assert payload["removed"] == ["alpha"]

    def test_unreadable_registry(self, runner, project, git):
        (project / "Repo.toml").write_bytes(b'[mods]\nalpha = "\xff"\n')

        result = invoke(runner, project, "get", "alpha")

        assert result.exit_code == 1
        assert "RegistryParseError" in result.output

    def test_unreadable_manifest(self, runner, project, git):
        (project / "Cargo.toml").unlink()
        (project / "Cargo.toml").mkdir()

        result = invoke(runner, project, "status")

        assert result.exit_code == 1
        assert "ManifestParseError" in result.output

    def test_get_unknown(self, runner, project, git):
        result = invoke(runner, project, "get", "nope")

        assert result.exit_code == 1
        assert "ModuleNotFound" in result.output

    def test_put_dirty(self, runner, project, git):
        invoke(runner, project, "get", "alpha")
        git.status_output["repo-x"] = " M alpha/lib.rs\n"

        result = invoke(runner, project, "put", "alpha")

        assert result.exit_code == 1
        assert "WorkingCopyDirty" in result.output
        assert "alpha/lib.rs" in result.output
        assert (project / "repo-x").exists()

    def test_put_unpushed(self, runner, project, git):
        invoke(runner, project, "get", "alpha")
        git.diff_output["repo-x"] = " alpha/lib.rs | 1 +\n"

        result = invoke(runner, project, "put", "alpha")

        assert result.exit_code == 1
        assert "UnpushedChanges" in result.output

    def test_put_not_bound(self, runner, project, git):
        result = invoke(runner, project, "put", "alpha")

        assert result.exit_code == 0
        assert "does not exist" in result.output

    def test_inconsistent_exit_code(self, runner, project, git):
        invoke(runner, project, "get", "alpha")
        shutil.rmtree(project / "repo-x")

        result = invoke(runner, project, "put", "alpha")

        assert result.exit_code == 3
        assert "InconsistentOverrideState" in result.output

    def test_status_json(self, runner, project, git):
        invoke(runner, project, "get", "alpha")

        result = invoke(runner, project, "status", "--json")

        assert result.exit_code == 0
        rows = json.loads(result.output)
        assert rows[0]["location"] == REPO_X
        assert rows[0]["consistent"] is True

    def test_status_empty(self, runner, project, git):
        result = invoke(runner, project, "status")

        assert result.exit_code == 0
        assert "No local overrides" in result.output


class TestRegistryCommands:
    def test_list_json(self, runner, project):
        result = invoke(runner, project, "list", "--json")

        assert result.exit_code == 0
        names = [e["name"] for e in json.loads(result.output)]
        assert names[:4] == ["alpha", "beta", "gamma", "shared"]
        assert "top_one" in names

    def test_list_class(self, runner, project):
        result = invoke(runner, project, "list", "--class", "tops", "--json")

        entries = json.loads(result.output)
        assert {e["class"] for e in entries} == {"tops"}

    def test_list_table(self, runner, project):
        result = invoke(runner, project, "list")

        assert result.exit_code == 0
        assert "alpha" in result.output

    def test_list_missing_registry(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "list")

        assert result.exit_code == 1
        assert "RegistryNotFound" in result.output


class TestProjectCommands:
    def test_new(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "new", "hello", "--root", "top_task")

        assert result.exit_code == 0, result.output
        assert read_toml(tmp_path / "hello" / "Cargo.toml")["package"]["name"] == "hello"

    def test_new_requires_root(self, runner, tmp_path):
        result = invoke(runner, tmp_path, "new", "hello")

        assert result.exit_code == 2

    def test_build_failure(self, runner, tmp_path, monkeypatch):
        monkeypatch.setenv("LKTOOL_MAKE", "lktool-no-such-make")

        result = invoke(runner, tmp_path, "build")

        assert result.exit_code == 1
        assert "BuildFailed" in result.output
