from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Callable, Generator, Iterable, Tuple

import pytest

from tmpo.storage import Database

LEGACY_SCHEMA = """
CREATE TABLE time_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_name TEXT NOT NULL,
    start_time DATETIME NOT NULL,
    end_time DATETIME,
    description TEXT
);
"""


@pytest.fixture(autouse=True)
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``~`` at a scratch directory so no test touches the real data dir."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    monkeypatch.delenv("TMPO_DEV", raising=False)
    monkeypatch.delenv("TMPO_LOG_LEVEL", raising=False)
    return home_dir


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "work" / "acme-site"
    path.mkdir(parents=True)
    monkeypatch.chdir(path)
    return path


@pytest.fixture
def db(tmp_path: Path) -> Generator[Database, None, None]:
    database = Database(tmp_path / "tmpo.db")
    try:
        yield database
    finally:
        database.close()


@pytest.fixture
def legacy_db(tmp_path: Path) -> Callable[[Iterable[Tuple[str, str, object, str]]], Path]:
    """Build a database in the pre-migration layout holding ``(project, start, end, description)`` rows."""

    def factory(rows: Iterable[Tuple[str, str, object, str]]) -> Path:
        path = tmp_path / "legacy.db"
        conn = sqlite3.connect(str(path))
        try:
            conn.executescript(LEGACY_SCHEMA)
            conn.executemany(
                "INSERT INTO time_entries (project_name, start_time, end_time, description) VALUES (?, ?, ?, ?)",
                list(rows),
            )
            conn.commit()
        finally:
            conn.close()
        return path

    return factory


@pytest.fixture
def raw_rows() -> Callable[..., list]:
    """Read ``(id, start_time, end_time)`` exactly as stored, bypassing decoding."""

    def read(path: Path, table: str = "time_entries") -> list:
        conn = sqlite3.connect(str(path))
        try:
            return conn.execute(f"SELECT id, start_time, end_time FROM {table} ORDER BY id").fetchall()
        finally:
            conn.close()

    return read
