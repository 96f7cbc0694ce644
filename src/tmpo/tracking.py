"""Command orchestration: business rules layered over :class:`Database`.

The store permits several running entries or several active milestones per
project; the checks here are what keep both at one.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .errors import (
    ActiveMilestoneExistsError,
    AlreadyRunningError,
    EntryNotFoundError,
    InvalidEntryError,
    NoActiveMilestoneError,
    NoPreviousSessionError,
    NoRunningEntryError,
)
from .models import Milestone, TimeEntry, utcnow
from .storage import Database

logger = logging.getLogger(__name__)

_UNSET = object()


def _ensure_not_running(db: Database) -> None:
    running = db.get_running_entry()
    if running is not None:
        raise AlreadyRunningError(running.project_name)


def start_entry(
    db: Database,
    project_name: str,
    description: str = "",
    hourly_rate: Optional[float] = None,
    milestone_name: Optional[str] = None,
) -> TimeEntry:
    """Start tracking. Without an explicit milestone the project's active one is attached."""
    _ensure_not_running(db)
    if milestone_name is None:
        active = db.get_active_milestone_for_project(project_name)
        if active is not None:
            milestone_name = active.name
    entry = db.create_entry(project_name, description.strip(), hourly_rate, milestone_name)
    logger.debug("Started entry %d for %s", entry.id, project_name)
    return entry


def stop_entry(db: Database) -> TimeEntry:
    running = db.get_running_entry()
    if running is None:
        raise NoRunningEntryError()
    db.stop_entry(running.id)
    stopped = db.get_entry(running.id)
    if stopped is None:
        raise EntryNotFoundError(running.id)
    return stopped


def pause_entry(db: Database) -> TimeEntry:
    """Pausing closes the running entry; :func:`resume_entry` opens a fresh one."""
    return stop_entry(db)


def resume_entry(db: Database, project_name: str) -> TimeEntry:
    _ensure_not_running(db)
    last = db.get_last_stopped_entry(project_name)
    if last is None:
        raise NoPreviousSessionError(project_name)
    return db.create_entry(last.project_name, last.description, last.hourly_rate, last.milestone_name)


def _validate_bounds(start: datetime, end: Optional[datetime], now: Optional[datetime] = None) -> None:
    if end is None:
        return
    if end <= start:
        raise InvalidEntryError("End time must be after start time.")
    if end > (now or utcnow()):
        raise InvalidEntryError("End time cannot be in the future.")


def add_manual_entry(
    db: Database,
    project_name: str,
    start_time: datetime,
    end_time: datetime,
    description: str = "",
    hourly_rate: Optional[float] = None,
    milestone_name: Optional[str] = None,
) -> TimeEntry:
    _validate_bounds(start_time, end_time)
    return db.create_manual_entry(project_name, description.strip(), start_time, end_time, hourly_rate, milestone_name)


def edit_entry(
    db: Database,
    entry_id: int,
    project_name: Optional[str] = None,
    description: Optional[str] = None,
    start_time: Optional[datetime] = None,
    end_time: Optional[datetime] = None,
    hourly_rate: object = _UNSET,
    milestone_name: object = _UNSET,
) -> TimeEntry:
    """Change fields of an entry. ``hourly_rate``/``milestone_name`` accept ``None`` to clear."""
    entry = db.get_entry(entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id)
    if project_name is not None:
        if not project_name.strip():
            raise InvalidEntryError("Project name cannot be empty.")
        entry.project_name = project_name.strip()
    if description is not None:
        entry.description = description.strip()
    if start_time is not None:
        entry.start_time = start_time
    if end_time is not None:
        if entry.is_running:
            raise InvalidEntryError("Cannot set an end time on a running entry; stop it first.")
        entry.end_time = end_time
    if hourly_rate is not _UNSET:
        if hourly_rate is not None and hourly_rate < 0:
            raise InvalidEntryError("Hourly rate cannot be negative.")
        entry.hourly_rate = hourly_rate
    if milestone_name is not _UNSET:
        entry.milestone_name = milestone_name
    if entry.end_time is not None and entry.end_time <= entry.start_time:
        raise InvalidEntryError("End time must be after start time.")
    if entry.is_running and entry.start_time > utcnow():
        raise InvalidEntryError("Start time cannot be in the future.")
    db.update_time_entry(entry_id, entry)
    updated = db.get_entry(entry_id)
    if updated is None:
        raise EntryNotFoundError(entry_id)
    return updated


def delete_entry(db: Database, entry_id: int) -> TimeEntry:
    entry = db.get_entry(entry_id)
    if entry is None:
        raise EntryNotFoundError(entry_id)
    db.delete_time_entry(entry_id)
    return entry


def start_milestone(db: Database, project_name: str, name: str) -> Milestone:
    """Open a milestone. Only one may be active per project; names are unique per project."""
    name = name.strip()
    if not name:
        raise InvalidEntryError("Milestone name cannot be empty.")
    active = db.get_active_milestone_for_project(project_name)
    if active is not None:
        raise ActiveMilestoneExistsError(project_name, active.name)
    return db.create_milestone(project_name, name)


def finish_milestone(db: Database, project_name: str) -> Milestone:
    active = db.get_active_milestone_for_project(project_name)
    if active is None:
        raise NoActiveMilestoneError(project_name)
    db.finish_milestone(active.id)
    finished = db.get_milestone(active.id)
    return finished if finished is not None else active


@dataclass
class MilestoneStatus:
    milestone: Milestone
    entries: List[TimeEntry]

    @property
    def tracked_hours(self) -> float:
        return sum(entry.hours() for entry in self.entries)


def milestone_status(db: Database, milestone: Milestone) -> MilestoneStatus:
    return MilestoneStatus(milestone, db.get_entries_by_milestone(milestone.project_name, milestone.name))
