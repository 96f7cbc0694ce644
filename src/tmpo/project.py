"""Decide which project a command acts on and which rate/export path apply to it.

Project name priority, first match wins:

1. an explicit name (``--project``), which must exist in the global registry
2. the nearest ``.tmporc``: its ``project_name``, else its directory name
3. the git repository root's directory name
4. the current directory's name
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import settings
from .settings import ProjectsRegistry

logger = logging.getLogger(__name__)


@dataclass
class ProjectConfig:
    hourly_rate: Optional[float] = None
    export_path: str = ""


def _git(args: list, cwd: Optional[Path]) -> Optional[str]:
    try:
        result = subprocess.run(
            ["git", *args],
            cwd=str(cwd) if cwd else None,
            capture_output=True,
            text=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError):
        return None
    return result.stdout.strip() or None


def get_git_root(cwd: Optional[Path] = None) -> Optional[Path]:
    """Top level of the enclosing git work tree; ``None`` outside one or without git."""
    output = _git(["rev-parse", "--show-toplevel"], cwd)
    return Path(output) if output else None


def get_git_repo_name(cwd: Optional[Path] = None) -> Optional[str]:
    root = get_git_root(cwd)
    return root.name if root else None


def is_in_git_repo(cwd: Optional[Path] = None) -> bool:
    return _git(["rev-parse", "--git-dir"], cwd) is not None


def detect_project(cwd: Optional[Path] = None) -> str:
    """Project name from the directory alone: ``.tmporc`` location, git root, then cwd."""
    origin = (cwd or Path.cwd()).resolve()
    tmporc = settings.find_tmporc(origin)
    if tmporc is not None:
        return tmporc.parent.name
    git_name = get_git_repo_name(origin)
    if git_name:
        return git_name
    return origin.name


def detect_configured_project(cwd: Optional[Path] = None) -> str:
    config, path = settings.find_and_load(cwd)
    if config is not None and config.project_name:
        logger.debug("Using project '%s' from %s", config.project_name, path)
        return config.project_name
    return detect_project(cwd)


def detect_configured_project_with_override(
    explicit: Optional[str] = None,
    cwd: Optional[Path] = None,
    registry: Optional[ProjectsRegistry] = None,
) -> str:
    """Resolve the active project; an unknown explicit name raises ``ProjectNotFoundError``."""
    if explicit and explicit.strip():
        registry = registry if registry is not None else settings.load_projects()
        registry.get_project(explicit)
        return explicit.strip()
    return detect_configured_project(cwd)


def get_project_config(
    project_name: str,
    cwd: Optional[Path] = None,
    registry: Optional[ProjectsRegistry] = None,
) -> ProjectConfig:
    """Rate and export path for ``project_name``.

    A registry entry wins over a ``.tmporc`` declaring the same name. Nothing
    matching yields an empty :class:`ProjectConfig`.
    """
    registry = registry if registry is not None else settings.load_projects()
    global_project = registry.find(project_name)
    if global_project is not None:
        return ProjectConfig(global_project.hourly_rate, global_project.export_path)

    config, path = settings.find_and_load(cwd)
    if config is not None and (config.project_name or path.parent.name) == project_name:
        rate = config.hourly_rate if config.hourly_rate and config.hourly_rate > 0 else None
        return ProjectConfig(rate, config.export_path)
    return ProjectConfig()
