"""In-memory representations of time entries and milestones."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

UTC = timezone.utc
DEFAULT_ROUNDING_INCREMENT = 0.01


def utcnow() -> datetime:
    return datetime.now(UTC)


def round_hours(hours: float, increment: float = DEFAULT_ROUNDING_INCREMENT) -> float:
    """Round ``hours`` to the nearest multiple of ``increment``, halves away from zero.

    ``increment`` is expressed in hours: 0.01 gives two decimals, 0.25 quarter hours.
    """
    step = Decimal(str(increment))
    if step <= 0:
        raise ValueError("Rounding increment must be positive.")
    units = (Decimal(repr(hours)) / step).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return float(units * step)


@dataclass
class TimeEntry:
    """One tracked interval. ``end_time`` of ``None`` means the entry is running.

    ``milestone_name`` is a label, not a reference: it may name a milestone that
    was never created or no longer exists.
    """

    id: int
    project_name: str
    start_time: datetime
    end_time: Optional[datetime] = None
    description: str = ""
    hourly_rate: Optional[float] = None
    milestone_name: Optional[str] = None

    @property
    def is_running(self) -> bool:
        return self.end_time is None

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        if self.end_time is None:
            return (now or utcnow()) - self.start_time
        return self.end_time - self.start_time

    def hours(self, now: Optional[datetime] = None) -> float:
        return self.duration(now).total_seconds() / 3600

    def rounded_hours(self, increment: float = DEFAULT_ROUNDING_INCREMENT, now: Optional[datetime] = None) -> float:
        return round_hours(self.hours(now), increment)

    def earnings(self, increment: float = DEFAULT_ROUNDING_INCREMENT, now: Optional[datetime] = None) -> Optional[float]:
        if self.hourly_rate is None:
            return None
        return self.rounded_hours(increment, now) * self.hourly_rate


@dataclass
class Milestone:
    id: int
    project_name: str
    name: str
    start_time: datetime
    end_time: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def duration(self, now: Optional[datetime] = None) -> timedelta:
        if self.end_time is None:
            return (now or utcnow()) - self.start_time
        return self.end_time - self.start_time
