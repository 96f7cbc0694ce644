from __future__ import annotations

import shutil
import subprocess

import pytest

from tmpo import project, settings
from tmpo.errors import ProjectNotFoundError
from tmpo.settings import GlobalProject, ProjectsRegistry


@pytest.fixture
def registry() -> ProjectsRegistry:
    return ProjectsRegistry([GlobalProject("Client Work", 120.0, export_path="~/invoices")])


def test_explicit_unknown_project_fails(workdir, registry):
    with pytest.raises(ProjectNotFoundError, match="not found"):
        project.detect_configured_project_with_override("Unknown", workdir, registry)


def test_explicit_project_beats_tmporc(workdir, registry):
    settings.create_local_config("acme", directory=workdir)

    name = project.detect_configured_project_with_override("Client Work", workdir, registry)

    assert name == "Client Work"
    assert project.detect_configured_project_with_override(" client work ", workdir, registry) == "client work"


def test_tmporc_name_is_used_without_override(workdir, registry):
    nested = workdir / "docs"
    nested.mkdir()
    settings.create_local_config("acme", directory=workdir)

    assert project.detect_configured_project_with_override(None, nested, registry) == "acme"


def test_tmporc_without_name_uses_its_directory(workdir):
    nested = workdir / "src"
    nested.mkdir()
    (workdir / ".tmporc").write_text("hourly_rate: 40\n")

    assert project.detect_configured_project(nested) == "acme-site"
    assert project.get_project_config("acme-site", nested, ProjectsRegistry()).hourly_rate == 40.0


def test_falls_back_to_directory_name(workdir):
    assert project.detect_configured_project(workdir) == "acme-site"


@pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")
def test_falls_back_to_git_root_name(tmp_path):
    repo = tmp_path / "widgets"
    nested = repo / "lib" / "core"
    nested.mkdir(parents=True)
    subprocess.run(["git", "init", "-q", str(repo)], check=True)

    assert project.is_in_git_repo(nested)
    assert project.get_git_repo_name(nested) == "widgets"
    assert project.detect_configured_project(nested) == "widgets"


def test_registry_beats_tmporc_for_rate(workdir, registry):
    settings.create_local_config("Client Work", 50.0, directory=workdir)

    config = project.get_project_config("Client Work", workdir, registry)

    assert config.hourly_rate == 120.0
    assert config.export_path == "~/invoices"


def test_tmporc_rate_applies_to_its_own_project(workdir):
    settings.create_local_config("acme", 65.0, export_path="out", directory=workdir)

    config = project.get_project_config("acme", workdir, ProjectsRegistry())

    assert config.hourly_rate == 65.0
    assert config.export_path == "out"


def test_unknown_project_has_empty_config(workdir):
    config = project.get_project_config("nobody", workdir, ProjectsRegistry())

    assert config == project.ProjectConfig()
