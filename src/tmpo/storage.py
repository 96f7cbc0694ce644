"""SQLite-backed store for time entries, milestones and the migration ledger."""
from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Union

from . import settings
from .dbtime import decode_optional, decode_timestamp, encode_optional, encode_timestamp, utcnow_text
from .errors import MilestoneExistsError, SetupError, StorageError
from .migrations import run_migrations
from .models import Milestone, TimeEntry

logger = logging.getLogger(__name__)

DB_FILENAME = "tmpo.db"

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS time_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_name TEXT NOT NULL,
    start_time DATETIME NOT NULL,
    end_time DATETIME,
    description TEXT,
    hourly_rate REAL,
    milestone_name TEXT
);

CREATE TABLE IF NOT EXISTS milestones (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_name TEXT NOT NULL,
    name TEXT NOT NULL,
    start_time DATETIME NOT NULL,
    end_time DATETIME,
    UNIQUE(project_name, name)
);

CREATE TABLE IF NOT EXISTS settings (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at DATETIME NOT NULL
);
"""

# Indexes reference columns that older databases only gain through migrations.
INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_time_entries_milestone ON time_entries(milestone_name);
CREATE INDEX IF NOT EXISTS idx_milestones_project_active ON milestones(project_name, end_time);
"""

ENTRY_COLUMNS = "id, project_name, start_time, end_time, description, hourly_rate, milestone_name"
MILESTONE_COLUMNS = "id, project_name, name, start_time, end_time"


def _entry_from_row(row: sqlite3.Row) -> TimeEntry:
    return TimeEntry(
        id=row["id"],
        project_name=row["project_name"],
        start_time=decode_timestamp(row["start_time"]),
        end_time=decode_optional(row["end_time"]),
        description=row["description"] or "",
        hourly_rate=row["hourly_rate"],
        milestone_name=row["milestone_name"],
    )


def _milestone_from_row(row: sqlite3.Row) -> Milestone:
    return Milestone(
        id=row["id"],
        project_name=row["project_name"],
        name=row["name"],
        start_time=decode_timestamp(row["start_time"]),
        end_time=decode_optional(row["end_time"]),
    )


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    try:
        yield
    except sqlite3.Error as exc:
        raise StorageError(f"failed to {action}: {exc}") from exc


class Database:
    """Owns the connection to ``tmpo.db``.

    Opening a database creates missing tables, applies pending migrations and
    then creates indexes. Lookups for a single row return ``None`` when nothing
    matches. The store does not enforce "one running entry" or "one active
    milestone per project"; :mod:`tmpo.tracking` does.
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        try:
            self.conn = sqlite3.connect(str(self.path))
        except sqlite3.Error as exc:
            raise SetupError(f"failed to open database at {self.path}: {exc}") from exc
        self.conn.row_factory = sqlite3.Row
        try:
            self._ensure_schema()
        except SetupError:
            self.conn.close()
            raise
        except sqlite3.Error as exc:
            self.conn.close()
            raise SetupError(f"failed to prepare database at {self.path}: {exc}") from exc

    @classmethod
    def initialize(cls) -> "Database":
        """Open the database in the tmpo data directory, creating the directory if needed."""
        data_dir = settings.data_dir()
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SetupError(f"failed to create {data_dir}: {exc}") from exc
        return cls(data_dir / DB_FILENAME)

    def _ensure_schema(self) -> None:
        self.conn.executescript(SCHEMA_SQL)
        applied = run_migrations(self.conn)
        if applied:
            logger.info("Database %s migrated: %s", self.path, ", ".join(applied))
        self.conn.executescript(INDEX_SQL)

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Time entries
    # ------------------------------------------------------------------

    def _insert_entry(
        self,
        project_name: str,
        description: str,
        start: str,
        end: Optional[str],
        hourly_rate: Optional[float],
        milestone_name: Optional[str],
    ) -> TimeEntry:
        with self.conn:
            cursor = self.conn.execute(
                "INSERT INTO time_entries (project_name, start_time, end_time, description, hourly_rate, milestone_name)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (project_name, start, end, description, hourly_rate, milestone_name),
            )
        entry = self.get_entry(cursor.lastrowid)
        if entry is None:
            raise StorageError(f"entry {cursor.lastrowid} vanished after insert")
        return entry

    def create_entry(
        self,
        project_name: str,
        description: str = "",
        hourly_rate: Optional[float] = None,
        milestone_name: Optional[str] = None,
    ) -> TimeEntry:
        """Insert a running entry that starts now."""
        with _storage_errors("create entry"):
            return self._insert_entry(project_name, description, utcnow_text(), None, hourly_rate, milestone_name)

    def create_manual_entry(
        self,
        project_name: str,
        description: str,
        start_time: datetime,
        end_time: datetime,
        hourly_rate: Optional[float] = None,
        milestone_name: Optional[str] = None,
    ) -> TimeEntry:
        """Insert a completed entry. Ordering of the bounds is the caller's concern."""
        with _storage_errors("create manual entry"):
            return self._insert_entry(
                project_name,
                description,
                encode_timestamp(start_time),
                encode_timestamp(end_time),
                hourly_rate,
                milestone_name,
            )

    def stop_entry(self, entry_id: int) -> None:
        with _storage_errors("stop entry"), self.conn:
            self.conn.execute("UPDATE time_entries SET end_time = ? WHERE id = ?", (utcnow_text(), entry_id))

    def get_entry(self, entry_id: int) -> Optional[TimeEntry]:
        with _storage_errors("get entry"):
            row = self.conn.execute(f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE id = ?", (entry_id,)).fetchone()
        return _entry_from_row(row) if row else None

    def get_running_entry(self) -> Optional[TimeEntry]:
        """Most recent entry without an end time, if any."""
        with _storage_errors("get running entry"):
            row = self.conn.execute(
                f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE end_time IS NULL ORDER BY start_time DESC LIMIT 1"
            ).fetchone()
        return _entry_from_row(row) if row else None

    def get_last_stopped_entry(self, project_name: Optional[str] = None) -> Optional[TimeEntry]:
        query = [f"SELECT {ENTRY_COLUMNS} FROM time_entries WHERE end_time IS NOT NULL"]
        params: List[object] = []
        if project_name is not None:
            query.append("AND project_name = ?")
            params.append(project_name)
        query.append("ORDER BY start_time DESC LIMIT 1")
        with _storage_errors("get last stopped entry"):
            row = self.conn.execute(" ".join(query), params).fetchone()
        return _entry_from_row(row) if row else None

    def _query_entries(self, action: str, where: str = "", params: tuple = (), limit: int = 0) -> List[TimeEntry]:
        query = f"SELECT {ENTRY_COLUMNS} FROM time_entries {where} ORDER BY start_time DESC"
        if limit > 0:
            query += f" LIMIT {int(limit)}"
        with _storage_errors(action):
            rows = self.conn.execute(query, params).fetchall()
        return [_entry_from_row(row) for row in rows]

    def get_entries(self, limit: int = 0) -> List[TimeEntry]:
        """Newest first. ``limit`` of 0 returns everything."""
        return self._query_entries("query entries", limit=limit)

    def get_entries_by_project(self, project_name: str) -> List[TimeEntry]:
        return self._query_entries("query entries", "WHERE project_name = ?", (project_name,))

    def get_entries_by_date_range(self, start: datetime, end: datetime) -> List[TimeEntry]:
        """Entries whose start falls within ``[start, end]``."""
        return self._query_entries(
            "query entries",
            "WHERE start_time BETWEEN ? AND ?",
            (encode_timestamp(start), encode_timestamp(end)),
        )

    def get_completed_entries_by_project(self, project_name: str) -> List[TimeEntry]:
        return self._query_entries(
            "query entries", "WHERE project_name = ? AND end_time IS NOT NULL", (project_name,)
        )

    def get_entries_by_milestone(self, project_name: str, milestone_name: str) -> List[TimeEntry]:
        return self._query_entries(
            "get entries by milestone",
            "WHERE project_name = ? AND milestone_name = ?",
            (project_name, milestone_name),
        )

    def _distinct_projects(self, where: str = "") -> List[str]:
        with _storage_errors("query projects"):
            rows = self.conn.execute(
                f"SELECT DISTINCT project_name FROM time_entries {where} ORDER BY project_name"
            ).fetchall()
        return [row[0] for row in rows]

    def get_all_projects(self) -> List[str]:
        return self._distinct_projects()

    def get_projects_with_completed_entries(self) -> List[str]:
        return self._distinct_projects("WHERE end_time IS NOT NULL")

    def update_time_entry(self, entry_id: int, entry: TimeEntry) -> None:
        """Replace every field of entry ``entry_id`` with the values on ``entry``."""
        with _storage_errors("update entry"), self.conn:
            self.conn.execute(
                """
                UPDATE time_entries
                SET project_name = ?, start_time = ?, end_time = ?, description = ?, hourly_rate = ?, milestone_name = ?
                WHERE id = ?
                """,
                (
                    entry.project_name,
                    encode_timestamp(entry.start_time),
                    encode_optional(entry.end_time),
                    entry.description,
                    entry.hourly_rate,
                    entry.milestone_name,
                    entry_id,
                ),
            )

    def delete_time_entry(self, entry_id: int) -> None:
        with _storage_errors("delete entry"), self.conn:
            self.conn.execute("DELETE FROM time_entries WHERE id = ?", (entry_id,))

    # ------------------------------------------------------------------
    # Milestones
    # ------------------------------------------------------------------

    def create_milestone(self, project_name: str, name: str) -> Milestone:
        """Insert an active milestone. Raises :class:`MilestoneExistsError` on a duplicate name."""
        try:
            with self.conn:
                cursor = self.conn.execute(
                    "INSERT INTO milestones (project_name, name, start_time) VALUES (?, ?, ?)",
                    (project_name, name, utcnow_text()),
                )
        except sqlite3.IntegrityError as exc:
            raise MilestoneExistsError(project_name, name) from exc
        except sqlite3.Error as exc:
            raise StorageError(f"failed to create milestone: {exc}") from exc
        milestone = self.get_milestone(cursor.lastrowid)
        if milestone is None:
            raise StorageError(f"milestone {cursor.lastrowid} vanished after insert")
        return milestone

    def get_milestone(self, milestone_id: int) -> Optional[Milestone]:
        with _storage_errors("get milestone"):
            row = self.conn.execute(
                f"SELECT {MILESTONE_COLUMNS} FROM milestones WHERE id = ?", (milestone_id,)
            ).fetchone()
        return _milestone_from_row(row) if row else None

    def get_active_milestone_for_project(self, project_name: str) -> Optional[Milestone]:
        with _storage_errors("get active milestone"):
            row = self.conn.execute(
                f"SELECT {MILESTONE_COLUMNS} FROM milestones"
                " WHERE project_name = ? AND end_time IS NULL ORDER BY start_time DESC LIMIT 1",
                (project_name,),
            ).fetchone()
        return _milestone_from_row(row) if row else None

    def get_milestone_by_name(self, project_name: str, name: str) -> Optional[Milestone]:
        with _storage_errors("get milestone by name"):
            row = self.conn.execute(
                f"SELECT {MILESTONE_COLUMNS} FROM milestones WHERE project_name = ? AND name = ?",
                (project_name, name),
            ).fetchone()
        return _milestone_from_row(row) if row else None

    def get_milestones_by_project(self, project_name: str) -> List[Milestone]:
        with _storage_errors("get milestones"):
            rows = self.conn.execute(
                f"SELECT {MILESTONE_COLUMNS} FROM milestones WHERE project_name = ? ORDER BY start_time DESC",
                (project_name,),
            ).fetchall()
        return [_milestone_from_row(row) for row in rows]

    def get_all_milestones(self) -> List[Milestone]:
        with _storage_errors("get all milestones"):
            rows = self.conn.execute(
                f"SELECT {MILESTONE_COLUMNS} FROM milestones ORDER BY start_time DESC"
            ).fetchall()
        return [_milestone_from_row(row) for row in rows]

    def finish_milestone(self, milestone_id: int) -> None:
        with _storage_errors("finish milestone"), self.conn:
            self.conn.execute("UPDATE milestones SET end_time = ? WHERE id = ?", (utcnow_text(), milestone_id))
