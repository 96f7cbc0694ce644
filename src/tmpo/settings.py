"""On-disk settings: data directory, global config, projects registry and ``.tmporc`` files."""
from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigError, ProjectExistsError, ProjectNotFoundError, SetupError

logger = logging.getLogger(__name__)

DATA_DIR_NAME = ".tmpo"
DEV_DATA_DIR_NAME = ".tmpo-dev"
DEV_ENV = "TMPO_DEV"
CONFIG_FILENAME = "config.yaml"
PROJECTS_FILENAME = "projects.yaml"
TMPORC_FILENAME = ".tmporc"

DEFAULT_CURRENCY = "USD"
DATE_FORMATS = ("MM/DD/YYYY", "DD/MM/YYYY", "YYYY-MM-DD")
TIME_FORMATS = ("24-hour", "12-hour")
DEFAULT_ROUNDING_INCREMENT = 0.01


def dev_mode() -> bool:
    return os.environ.get(DEV_ENV, "").strip().lower() in ("1", "true")


def data_dir() -> Path:
    """``~/.tmpo``, or ``~/.tmpo-dev`` when ``TMPO_DEV`` is set."""
    try:
        home = Path.home()
    except RuntimeError as exc:
        raise SetupError(f"failed to get home directory: {exc}") from exc
    return home / (DEV_DATA_DIR_NAME if dev_mode() else DATA_DIR_NAME)


def global_config_path() -> Path:
    return data_dir() / CONFIG_FILENAME


def projects_path() -> Path:
    return data_dir() / PROJECTS_FILENAME


def _read_yaml(path: Path, label: str) -> Dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read {label} at {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"failed to parse {label} at {path}: {exc} (check file syntax)") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse {label} at {path}: expected a mapping at the top level")
    logger.debug("Loaded %s from %s", label, path)
    return data


def _write_yaml(path: Path, data: Dict[str, Any], label: str, header: str = "") -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(header + yaml.safe_dump(data, sort_keys=False, allow_unicode=True), encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to write {label} at {path}: {exc}") from exc


def _optional_rate(value: Any, path: Path) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        rate = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"invalid hourly_rate {value!r} in {path}") from exc
    if rate < 0:
        raise ConfigError(f"hourly_rate cannot be negative in {path}")
    return rate


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def expand_export_path(value: str) -> Path:
    """Resolve a configured export path; empty means the current directory."""
    if not value:
        return Path.cwd()
    return Path(value).expanduser()


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


@dataclass
class GlobalConfig:
    currency: str = DEFAULT_CURRENCY
    date_format: str = ""
    time_format: str = ""
    timezone: str = ""
    export_path: str = ""
    rounding_increment: float = DEFAULT_ROUNDING_INCREMENT

    @classmethod
    def from_dict(cls, data: Dict[str, Any], path: Path) -> "GlobalConfig":
        config = cls(
            currency=_text(data.get("currency")).upper() or DEFAULT_CURRENCY,
            date_format=_text(data.get("date_format")),
            time_format=_text(data.get("time_format")),
            timezone=_text(data.get("timezone")),
            export_path=_text(data.get("export_path")),
        )
        increment = data.get("rounding_increment")
        if increment not in (None, ""):
            try:
                config.rounding_increment = float(increment)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"invalid rounding_increment {increment!r} in {path}") from exc
            if config.rounding_increment <= 0:
                raise ConfigError(f"rounding_increment must be positive in {path}")
        return config

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"currency": self.currency}
        for key in ("date_format", "time_format", "timezone", "export_path"):
            value = getattr(self, key)
            if value:
                data[key] = value
        if self.rounding_increment != DEFAULT_ROUNDING_INCREMENT:
            data["rounding_increment"] = self.rounding_increment
        return data

    def save(self, path: Optional[Path] = None) -> Path:
        target = path or global_config_path()
        _write_yaml(target, self.to_dict(), "global config")
        return target


def load_global_config(path: Optional[Path] = None) -> GlobalConfig:
    """Load ``config.yaml``; a missing file yields defaults and is not created."""
    target = path or global_config_path()
    if not target.exists():
        return GlobalConfig()
    return GlobalConfig.from_dict(_read_yaml(target, "global config"), target)


# ---------------------------------------------------------------------------
# Global projects registry
# ---------------------------------------------------------------------------


def _normalize_name(name: str) -> str:
    normalized = (name or "").strip()
    if not normalized:
        raise ValueError("project name cannot be empty")
    return normalized


@dataclass
class GlobalProject:
    name: str
    hourly_rate: Optional[float] = None
    description: str = ""
    export_path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name}
        if self.hourly_rate is not None:
            data["hourly_rate"] = self.hourly_rate
        if self.description:
            data["description"] = self.description
        if self.export_path:
            data["export_path"] = self.export_path
        return data


@dataclass
class ProjectsRegistry:
    """Projects trackable from any directory, keyed by case-insensitive name."""

    projects: List[GlobalProject] = field(default_factory=list)

    def get_project(self, name: str) -> GlobalProject:
        normalized = _normalize_name(name)
        for project in self.projects:
            if project.name.lower() == normalized.lower():
                return project
        raise ProjectNotFoundError(f"project '{name}' not found in global registry")

    def find(self, name: str) -> Optional[GlobalProject]:
        try:
            return self.get_project(name)
        except (ProjectNotFoundError, ValueError):
            return None

    def exists(self, name: str) -> bool:
        return self.find(name) is not None

    def add_project(self, project: GlobalProject) -> None:
        project.name = _normalize_name(project.name)
        if self.exists(project.name):
            raise ProjectExistsError(f"project '{project.name}' already exists")
        self.projects.append(project)

    def update_project(self, name: str, updated: GlobalProject) -> None:
        existing = self.get_project(name)
        if not updated.name:
            updated.name = existing.name
        self.projects[self.projects.index(existing)] = updated

    def delete_project(self, name: str) -> None:
        self.projects.remove(self.get_project(name))

    def list_projects(self) -> List[GlobalProject]:
        return list(self.projects)

    def save(self, path: Optional[Path] = None) -> Path:
        target = path or projects_path()
        _write_yaml(target, {"projects": [project.to_dict() for project in self.projects]}, "projects registry")
        return target


def load_projects(path: Optional[Path] = None) -> ProjectsRegistry:
    """Load ``projects.yaml``; a missing file yields an empty registry."""
    target = path or projects_path()
    if not target.exists():
        return ProjectsRegistry()
    data = _read_yaml(target, "projects registry")
    raw_projects = data.get("projects") or []
    if not isinstance(raw_projects, list):
        raise ConfigError(f"failed to parse projects registry at {target}: 'projects' must be a list")
    registry = ProjectsRegistry()
    for raw in raw_projects:
        if not isinstance(raw, dict) or not _text(raw.get("name")):
            raise ConfigError(f"failed to parse projects registry at {target}: every project needs a name")
        registry.projects.append(
            GlobalProject(
                name=_text(raw.get("name")),
                hourly_rate=_optional_rate(raw.get("hourly_rate"), target),
                description=_text(raw.get("description")),
                export_path=_text(raw.get("export_path")),
            )
        )
    return registry


# ---------------------------------------------------------------------------
# Per-directory .tmporc
# ---------------------------------------------------------------------------


TMPORC_HEADER = """\
# tmpo project configuration
# project_name: name used for entries tracked under this directory
# hourly_rate: rate snapshot stored on new entries (optional)
# export_path: default directory for `tmpo export` (optional)
"""


@dataclass
class LocalConfig:
    project_name: str = ""
    hourly_rate: Optional[float] = None
    description: str = ""
    export_path: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def find_tmporc(start: Optional[Path] = None) -> Optional[Path]:
    """Nearest ``.tmporc`` in ``start`` or its ancestors; the search stops at the first hit."""
    origin = (start or Path.cwd()).resolve()
    for candidate in [origin, *origin.parents]:
        tmporc = candidate / TMPORC_FILENAME
        if tmporc.is_file():
            return tmporc
    return None


def load_local_config(path: Path) -> LocalConfig:
    data = _read_yaml(path, "project config")
    return LocalConfig(
        project_name=_text(data.get("project_name")),
        hourly_rate=_optional_rate(data.get("hourly_rate"), path),
        description=_text(data.get("description")),
        export_path=_text(data.get("export_path")),
    )


def find_and_load(start: Optional[Path] = None) -> Tuple[Optional[LocalConfig], Optional[Path]]:
    path = find_tmporc(start)
    if path is None:
        return None, None
    return load_local_config(path), path


def create_local_config(
    name: str,
    hourly_rate: Optional[float] = None,
    description: str = "",
    export_path: str = "",
    directory: Optional[Path] = None,
) -> Path:
    """Write a ``.tmporc`` into ``directory`` (default cwd). Existing files are never overwritten."""
    target = (directory or Path.cwd()) / TMPORC_FILENAME
    if target.exists():
        raise ProjectExistsError(f"{TMPORC_FILENAME} already exists in {target.parent}")
    config = LocalConfig(
        project_name=_normalize_name(name),
        hourly_rate=hourly_rate if hourly_rate and hourly_rate > 0 else None,
        description=description.strip(),
        export_path=export_path.strip(),
    )
    _write_yaml(target, config.to_dict(), "project config", header=TMPORC_HEADER)
    return target
