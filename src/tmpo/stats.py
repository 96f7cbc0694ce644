"""Aggregate entries into per-project totals and estimated earnings."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Tuple

from .models import DEFAULT_ROUNDING_INCREMENT, TimeEntry


@dataclass
class ProjectTotals:
    name: str
    duration: timedelta = field(default_factory=timedelta)
    entry_count: int = 0
    earnings: Optional[float] = None

    def share_of(self, total: timedelta) -> float:
        if not total:
            return 0.0
        return self.duration / total * 100


@dataclass
class Summary:
    duration: timedelta = field(default_factory=timedelta)
    entry_count: int = 0
    earnings: Optional[float] = None
    projects: Dict[str, ProjectTotals] = field(default_factory=dict)

    @property
    def hours(self) -> float:
        return self.duration.total_seconds() / 3600

    def by_duration(self) -> List[ProjectTotals]:
        return sorted(self.projects.values(), key=lambda item: (-item.duration, item.name.lower()))


def _add(current: Optional[float], amount: Optional[float]) -> Optional[float]:
    if amount is None:
        return current
    return (current or 0.0) + amount


def summarize(
    entries: Iterable[TimeEntry],
    rounding_increment: float = DEFAULT_ROUNDING_INCREMENT,
    now: Optional[datetime] = None,
) -> Summary:
    """Earnings use each entry's own rate snapshot; entries without one add no earnings."""
    summary = Summary()
    for entry in entries:
        duration = entry.duration(now)
        totals = summary.projects.setdefault(entry.project_name, ProjectTotals(entry.project_name))
        totals.duration += duration
        totals.entry_count += 1
        earned = entry.earnings(rounding_increment, now)
        totals.earnings = _add(totals.earnings, earned)
        summary.duration += duration
        summary.entry_count += 1
        summary.earnings = _add(summary.earnings, earned)
    return summary


def day_bounds(reference: datetime) -> Tuple[datetime, datetime]:
    start = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1) - timedelta(microseconds=1)


def week_bounds(reference: datetime) -> Tuple[datetime, datetime]:
    """Monday 00:00 through Sunday 23:59:59.999999 of ``reference``'s week, in its zone."""
    day_start, _ = day_bounds(reference)
    start = day_start - timedelta(days=reference.weekday())
    return start, start + timedelta(days=7) - timedelta(microseconds=1)
