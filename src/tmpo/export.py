"""CSV and JSON encoders for time entries."""
from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import IO, Any, Dict, Iterable, List, Optional, Union

from .models import TimeEntry

CSV_HEADER = ["Project", "Start Time", "End Time", "Duration (hours)", "Description", "Milestone"]
CSV_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def write_csv(entries: Iterable[TimeEntry], stream: IO[str], now: Optional[datetime] = None) -> None:
    writer = csv.writer(stream)
    writer.writerow(CSV_HEADER)
    for entry in entries:
        writer.writerow(
            [
                entry.project_name,
                entry.start_time.strftime(CSV_TIME_FORMAT),
                entry.end_time.strftime(CSV_TIME_FORMAT) if entry.end_time else "",
                f"{entry.hours(now):.2f}",
                entry.description,
                entry.milestone_name or "",
            ]
        )


def entry_record(entry: TimeEntry, now: Optional[datetime] = None) -> Dict[str, Any]:
    """JSON shape of one entry; absent end time, description and milestone are omitted."""
    record: Dict[str, Any] = {
        "project": entry.project_name,
        "start_time": entry.start_time.isoformat(timespec="seconds"),
    }
    if entry.end_time is not None:
        record["end_time"] = entry.end_time.isoformat(timespec="seconds")
    record["duration_hours"] = entry.hours(now)
    if entry.description:
        record["description"] = entry.description
    if entry.milestone_name:
        record["milestone"] = entry.milestone_name
    return record


def write_json(entries: Iterable[TimeEntry], stream: IO[str], now: Optional[datetime] = None) -> None:
    records: List[Dict[str, Any]] = [entry_record(entry, now) for entry in entries]
    json.dump(records, stream, indent=2, ensure_ascii=False)
    stream.write("\n")


def to_csv(entries: Iterable[TimeEntry], filename: Union[str, Path]) -> Path:
    path = Path(filename)
    with path.open("w", encoding="utf-8", newline="") as handle:
        write_csv(entries, handle)
    return path


def to_json(entries: Iterable[TimeEntry], filename: Union[str, Path]) -> Path:
    path = Path(filename)
    with path.open("w", encoding="utf-8") as handle:
        write_json(entries, handle)
    return path
