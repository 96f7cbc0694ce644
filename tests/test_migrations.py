from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

import pytest

from tmpo.errors import MigrationError
from tmpo.migrations import (
    MIGRATION_HOURLY_RATE_COLUMN,
    MIGRATION_MILESTONE_NAME_COLUMN,
    MIGRATION_UTC_TIMESTAMPS,
    MIGRATIONS,
    Migration,
    has_migration_run,
    run_migrations,
)
from tmpo.storage import Database

LOCAL_ROW = ("acme", "2026-01-08 15:30:00-05:00", "2026-01-08 17:00:00-05:00", "design review")
GO_LAYOUT_ROW = ("acme", "2026-01-08 15:30:00 -0500 EST", "2026-01-08 16:15:00 -0500 EST", "")
UTC_ROW = ("acme", "2026-01-09 10:00:00.000000+00:00", "2026-01-09 11:30:00.000000+00:00", "")
RUNNING_ROW = ("acme", "2026-01-10 09:00:00+01:00", None, "still going")


def test_local_offsets_are_rewritten_as_the_same_instant_in_utc(legacy_db, raw_rows):
    path = legacy_db([LOCAL_ROW, GO_LAYOUT_ROW])

    with Database(path) as db:
        entries = sorted(db.get_entries(), key=lambda entry: entry.id)

    rows = raw_rows(path)
    assert rows[0][1] == "2026-01-08 20:30:00.000000+00:00"
    assert rows[0][2] == "2026-01-08 22:00:00.000000+00:00"
    assert rows[1][1] == "2026-01-08 20:30:00.000000+00:00"
    assert rows[1][2] == "2026-01-08 21:15:00.000000+00:00"
    assert entries[0].start_time == datetime(2026, 1, 8, 20, 30, tzinfo=timezone.utc)
    assert entries[0].hours() == pytest.approx(1.5)


def test_utc_rows_are_left_byte_identical(legacy_db, raw_rows):
    path = legacy_db([UTC_ROW])

    Database(path).close()

    assert raw_rows(path)[0][1:] == (UTC_ROW[1], UTC_ROW[2])


def test_running_entries_keep_a_null_end(legacy_db, raw_rows):
    path = legacy_db([RUNNING_ROW])

    with Database(path) as db:
        running = db.get_running_entry()

    assert raw_rows(path)[0][1:] == ("2026-01-10 08:00:00.000000+00:00", None)
    assert running is not None
    assert running.description == "still going"


def test_legacy_schema_gains_rate_and_milestone_columns(legacy_db):
    path = legacy_db([LOCAL_ROW])

    with Database(path) as db:
        columns = {row[1] for row in db.conn.execute("PRAGMA table_info(time_entries)")}
        entry = db.get_entries()[0]

    assert {"hourly_rate", "milestone_name"} <= columns
    assert entry.hourly_rate is None
    assert entry.milestone_name is None


def test_every_migration_is_recorded_once(legacy_db):
    path = legacy_db([LOCAL_ROW])

    with Database(path) as db:
        assert all(has_migration_run(db.conn, migration.key) for migration in MIGRATIONS)
        assert run_migrations(db.conn) == []

    with Database(path) as db:
        markers = db.conn.execute("SELECT key, value FROM settings ORDER BY key").fetchall()

    assert sorted(tuple(row) for row in markers) == sorted(
        [
            (MIGRATION_HOURLY_RATE_COLUMN, "completed"),
            (MIGRATION_MILESTONE_NAME_COLUMN, "completed"),
            (MIGRATION_UTC_TIMESTAMPS, "completed"),
        ]
    )


def test_completed_timestamp_migration_does_not_rescan(legacy_db, raw_rows):
    path = legacy_db([LOCAL_ROW])
    Database(path).close()

    conn = sqlite3.connect(str(path))
    conn.execute(
        "INSERT INTO time_entries (project_name, start_time, end_time, description) VALUES (?, ?, ?, ?)",
        ("acme", "2026-02-01 09:00:00-05:00", "2026-02-01 10:00:00-05:00", ""),
    )
    conn.commit()
    conn.close()

    Database(path).close()

    assert raw_rows(path)[1][1] == "2026-02-01 09:00:00-05:00"


def test_milestone_timestamps_are_normalized_too(legacy_db, raw_rows):
    path = legacy_db([])
    conn = sqlite3.connect(str(path))
    conn.execute(
        "CREATE TABLE milestones (id INTEGER PRIMARY KEY AUTOINCREMENT, project_name TEXT NOT NULL,"
        " name TEXT NOT NULL, start_time DATETIME NOT NULL, end_time DATETIME, UNIQUE(project_name, name))"
    )
    conn.execute(
        "INSERT INTO milestones (project_name, name, start_time, end_time) VALUES (?, ?, ?, ?)",
        ("acme", "Sprint 1", "2026-01-05 09:00:00+02:00", None),
    )
    conn.commit()
    conn.close()

    with Database(path) as db:
        active = db.get_active_milestone_for_project("acme")

    assert raw_rows(path, "milestones")[0][1:] == ("2026-01-05 07:00:00.000000+00:00", None)
    assert active is not None and active.name == "Sprint 1"


def test_failed_migration_rolls_back_and_leaves_no_marker(db, raw_rows):
    entry = db.create_manual_entry(
        "acme",
        "",
        datetime(2026, 1, 8, 9, tzinfo=timezone.utc),
        datetime(2026, 1, 8, 10, tzinfo=timezone.utc),
    )
    before = raw_rows(db.path)

    def rewrite_then_fail(conn):
        conn.execute("UPDATE time_entries SET start_time = 'garbage' WHERE id = ?", (entry.id,))
        raise RuntimeError("disk on fire")

    broken = Migration("999_broken", "rewrite then fail", rewrite_then_fail)
    with pytest.raises(MigrationError, match="999_broken"):
        run_migrations(db.conn, [broken])

    assert not has_migration_run(db.conn, "999_broken")
    assert raw_rows(db.path) == before


def test_failed_migration_is_retried_on_next_run(db):
    calls = []

    def flaky(conn):
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first attempt fails")
        return 0

    migration = Migration("999_flaky", "fails once", flaky)
    with pytest.raises(MigrationError):
        run_migrations(db.conn, [migration])

    assert run_migrations(db.conn, [migration]) == ["999_flaky"]
    assert has_migration_run(db.conn, "999_flaky")
