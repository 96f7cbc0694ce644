"""Keyed, ordered, transactional migrations for the tmpo store.

Each migration runs at most once per database. Completion is recorded as a
ledger row in the ``settings`` table under the migration key, written inside
the same transaction as the migration's own changes, so a failed run leaves
neither data rewrites nor a marker behind and is retried in full next launch.
"""
from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, List, Sequence, Tuple

from .dbtime import decode_optional, decode_timestamp, encode_optional, encode_timestamp, is_utc, utcnow_text
from .errors import MigrationError

logger = logging.getLogger(__name__)

COMPLETED = "completed"

MIGRATION_HOURLY_RATE_COLUMN = "schema_time_entries_hourly_rate"
MIGRATION_MILESTONE_NAME_COLUMN = "schema_time_entries_milestone_name"
MIGRATION_UTC_TIMESTAMPS = "001_utc_timestamps"

TIMESTAMP_TABLES = ("time_entries", "milestones")


@dataclass(frozen=True)
class Migration:
    key: str
    description: str
    apply: Callable[[sqlite3.Connection], int]


def _column_exists(conn: sqlite3.Connection, table: str, column: str) -> bool:
    rows = conn.execute(f"PRAGMA table_info({table})").fetchall()
    return any(row[1] == column for row in rows)


def _maybe_add_column(conn: sqlite3.Connection, table: str, column: str, column_sql: str) -> int:
    if _column_exists(conn, table, column):
        return 0
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column_sql}")
    return 1


def _add_hourly_rate_column(conn: sqlite3.Connection) -> int:
    return _maybe_add_column(conn, "time_entries", "hourly_rate", "hourly_rate REAL")


def _add_milestone_name_column(conn: sqlite3.Connection) -> int:
    return _maybe_add_column(conn, "time_entries", "milestone_name", "milestone_name TEXT")


def _normalize_table_to_utc(conn: sqlite3.Connection, table: str) -> int:
    rows = conn.execute(f"SELECT id, start_time, end_time FROM {table}").fetchall()
    updates: List[Tuple[str, object, int]] = []
    for row_id, raw_start, raw_end in rows:
        start = decode_timestamp(raw_start)
        end = decode_optional(raw_end)
        needs_update = False
        new_start: object = raw_start
        new_end: object = raw_end
        if not is_utc(start):
            new_start = encode_timestamp(start)
            needs_update = True
        if end is not None and not is_utc(end):
            new_end = encode_optional(end)
            needs_update = True
        if needs_update:
            updates.append((new_start, new_end, row_id))
    if updates:
        conn.executemany(f"UPDATE {table} SET start_time = ?, end_time = ? WHERE id = ?", updates)
    logger.debug("Rewrote %d of %d %s rows to UTC", len(updates), len(rows), table)
    return len(updates)


def _timestamps_to_utc(conn: sqlite3.Connection) -> int:
    """Rewrite every non-UTC start/end timestamp as the same instant in UTC."""
    return sum(_normalize_table_to_utc(conn, table) for table in TIMESTAMP_TABLES)


MIGRATIONS: Tuple[Migration, ...] = (
    Migration(MIGRATION_HOURLY_RATE_COLUMN, "add time_entries.hourly_rate", _add_hourly_rate_column),
    Migration(MIGRATION_MILESTONE_NAME_COLUMN, "add time_entries.milestone_name", _add_milestone_name_column),
    Migration(MIGRATION_UTC_TIMESTAMPS, "convert stored timestamps to UTC", _timestamps_to_utc),
)


def has_migration_run(conn: sqlite3.Connection, key: str) -> bool:
    row = conn.execute("SELECT value FROM settings WHERE key = ?", (key,)).fetchone()
    if row is None:
        return False
    return row[0] == COMPLETED


def mark_migration_complete(conn: sqlite3.Connection, key: str) -> None:
    """Write the ledger marker. Does not commit; callers own the transaction."""
    conn.execute(
        "INSERT OR REPLACE INTO settings (key, value, updated_at) VALUES (?, ?, ?)",
        (key, COMPLETED, utcnow_text()),
    )


def _run_migration(conn: sqlite3.Connection, migration: Migration) -> int:
    conn.execute("BEGIN")
    with conn:
        changed = migration.apply(conn)
        mark_migration_complete(conn, migration.key)
    return changed


def run_migrations(conn: sqlite3.Connection, migrations: Sequence[Migration] = MIGRATIONS) -> List[str]:
    """Apply pending migrations in order and return the keys that ran."""
    applied: List[str] = []
    for migration in migrations:
        try:
            if has_migration_run(conn, migration.key):
                logger.debug("Migration %s already completed", migration.key)
                continue
            changed = _run_migration(conn, migration)
        except Exception as exc:
            if conn.in_transaction:
                conn.rollback()
            raise MigrationError(f"Migration {migration.key} ({migration.description}) failed: {exc}") from exc
        logger.info("Applied migration %s (%d changes)", migration.key, changed)
        applied.append(migration.key)
    return applied
