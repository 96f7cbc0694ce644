"""Presentation helpers driven by a :class:`GlobalConfig` built once per invocation."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from . import currency
from .settings import GlobalConfig

logger = logging.getLogger(__name__)

_DATE_PATTERNS = {
    "MM/DD/YYYY": ("%m/%d/%Y", "%m-%d-%Y"),
    "DD/MM/YYYY": ("%d/%m/%Y", "%d-%m-%Y"),
    "YYYY-MM-DD": ("%Y-%m-%d", "%Y-%m-%d"),
}
_DEFAULT_DATE_FORMAT = "MM/DD/YYYY"

_INPUT_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
)


def resolve_timezone(name: str) -> Optional[tzinfo]:
    """``ZoneInfo`` for an IANA name; ``None`` (host local) when empty or unknown."""
    if not name:
        return None
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using local time", name)
        return None


def format_duration(duration: timedelta) -> str:
    total = max(int(duration.total_seconds()), 0)
    hours, rem = divmod(total, 3600)
    minutes, seconds = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m"
    if minutes:
        return f"{minutes}m {seconds}s"
    return f"{seconds}s"


class Formatter:
    def __init__(self, config: Optional[GlobalConfig] = None) -> None:
        self.config = config or GlobalConfig()
        self.tz = resolve_timezone(self.config.timezone)
        self.date_patterns = _DATE_PATTERNS.get(self.config.date_format, _DATE_PATTERNS[_DEFAULT_DATE_FORMAT])
        self.use_24_hour = self.config.time_format == "24-hour"

    def localize(self, value: datetime) -> datetime:
        return value.astimezone(self.tz)

    def format_date(self, value: datetime) -> str:
        return self.localize(value).strftime(self.date_patterns[0])

    def format_date_dashed(self, value: datetime) -> str:
        return self.localize(value).strftime(self.date_patterns[1])

    def format_time(self, value: datetime) -> str:
        local = self.localize(value)
        if self.use_24_hour:
            return local.strftime("%H:%M")
        return local.strftime("%I:%M %p").lstrip("0")

    def format_datetime(self, value: datetime) -> str:
        return f"{self.format_date(value)} {self.format_time(value)}"

    def format_datetime_long(self, value: datetime) -> str:
        local = self.localize(value)
        return f"{local.strftime('%b')} {local.day}, {local.year} at {self.format_time(value)}"

    def format_currency(self, amount: float) -> str:
        return currency.format_currency(amount, self.config.currency)

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)

    def parse_datetime(self, text: str) -> datetime:
        """Parse user input (``YYYY-MM-DD HH:MM[:SS]`` or the configured date + time) in the configured zone."""
        text = text.strip()
        formats = list(_INPUT_FORMATS)
        for date_pattern in dict.fromkeys(self.date_patterns):
            formats.extend([f"{date_pattern} %H:%M", f"{date_pattern} %H:%M:%S", f"{date_pattern} %I:%M %p"])
        for pattern in formats:
            try:
                naive = datetime.strptime(text, pattern)
            except ValueError:
                continue
            if self.tz is None:
                return naive.astimezone()
            return naive.replace(tzinfo=self.tz)
        raise ValueError(f"Could not parse '{text}'. Use YYYY-MM-DD HH:MM.")
