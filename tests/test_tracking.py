from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from tmpo import tracking
from tmpo.errors import (
    ActiveMilestoneExistsError,
    AlreadyRunningError,
    EntryNotFoundError,
    InvalidEntryError,
    MilestoneExistsError,
    NoActiveMilestoneError,
    NoPreviousSessionError,
    NoRunningEntryError,
)

UTC = timezone.utc


def test_start_then_start_again_fails(db):
    tracking.start_entry(db, "acme", "  first  ")

    with pytest.raises(AlreadyRunningError, match="acme"):
        tracking.start_entry(db, "globex")

    running = db.get_running_entry()
    assert running.project_name == "acme"
    assert running.description == "first"


def test_stop_without_running_entry_fails(db):
    with pytest.raises(NoRunningEntryError):
        tracking.stop_entry(db)


def test_stop_closes_the_running_entry(db):
    started = tracking.start_entry(db, "acme", hourly_rate=90.0)

    stopped = tracking.stop_entry(db)

    assert stopped.id == started.id
    assert stopped.end_time is not None
    assert stopped.hourly_rate == 90.0
    assert db.get_running_entry() is None


def test_pause_and_resume_copy_the_last_session(db):
    tracking.start_entry(db, "acme", "refactor", 75.0, "Sprint 1")
    paused = tracking.pause_entry(db)

    resumed = tracking.resume_entry(db, "acme")

    assert resumed.id != paused.id
    assert resumed.is_running
    assert (resumed.description, resumed.hourly_rate, resumed.milestone_name) == ("refactor", 75.0, "Sprint 1")


def test_resume_without_history_fails(db):
    with pytest.raises(NoPreviousSessionError):
        tracking.resume_entry(db, "acme")


def test_resume_while_running_fails(db):
    tracking.start_entry(db, "acme")
    tracking.stop_entry(db)
    tracking.start_entry(db, "acme")

    with pytest.raises(AlreadyRunningError):
        tracking.resume_entry(db, "acme")


def test_milestone_flow_tags_new_entries(db):
    tracking.start_milestone(db, "acme", "Sprint 1")

    entry = tracking.start_entry(db, "acme")
    other = tracking.stop_entry(db)
    unrelated = tracking.start_entry(db, "globex")

    assert entry.milestone_name == "Sprint 1"
    assert other.milestone_name == "Sprint 1"
    assert unrelated.milestone_name is None

    tracking.stop_entry(db)
    finished = tracking.finish_milestone(db, "acme")
    after = tracking.start_entry(db, "acme")

    assert not finished.is_active
    assert after.milestone_name is None
    assert len(tracking.milestone_status(db, finished).entries) == 1


def test_explicit_milestone_overrides_active_one(db):
    tracking.start_milestone(db, "acme", "Sprint 1")

    entry = tracking.start_entry(db, "acme", milestone_name="Hotfix")

    assert entry.milestone_name == "Hotfix"


def test_second_active_milestone_is_rejected(db):
    tracking.start_milestone(db, "acme", "Sprint 1")

    with pytest.raises(ActiveMilestoneExistsError, match="Sprint 1"):
        tracking.start_milestone(db, "acme", "Sprint 2")

    assert len(db.get_milestones_by_project("acme")) == 1


def test_reusing_a_finished_milestone_name_is_rejected(db):
    tracking.start_milestone(db, "acme", "Sprint 1")
    tracking.finish_milestone(db, "acme")

    with pytest.raises(MilestoneExistsError):
        tracking.start_milestone(db, "acme", "Sprint 1")


def test_finish_without_active_milestone_fails(db):
    with pytest.raises(NoActiveMilestoneError):
        tracking.finish_milestone(db, "acme")


def test_milestone_name_is_required(db):
    with pytest.raises(InvalidEntryError):
        tracking.start_milestone(db, "acme", "   ")


def test_manual_entry_validation(db):
    start = datetime(2026, 1, 8, 9, tzinfo=UTC)

    with pytest.raises(InvalidEntryError, match="after start"):
        tracking.add_manual_entry(db, "acme", start, start)
    with pytest.raises(InvalidEntryError, match="future"):
        tracking.add_manual_entry(db, "acme", start, datetime.now(UTC) + timedelta(hours=1))

    entry = tracking.add_manual_entry(db, "acme", start, start + timedelta(minutes=90), "workshop", 100.0)

    assert entry.hours() == pytest.approx(1.5)
    assert entry.earnings() == pytest.approx(150.0)
    assert db.get_running_entry() is None


def test_edit_entry_fields(db):
    start = datetime(2026, 1, 8, 9, tzinfo=UTC)
    entry = tracking.add_manual_entry(db, "acme", start, start + timedelta(hours=1), milestone_name="Sprint 1")

    edited = tracking.edit_entry(
        db,
        entry.id,
        description="pairing",
        end_time=start + timedelta(hours=2),
        hourly_rate=60.0,
        milestone_name=None,
    )

    assert edited.description == "pairing"
    assert edited.hours() == pytest.approx(2.0)
    assert edited.hourly_rate == 60.0
    assert edited.milestone_name is None


def test_edit_rejects_inverted_bounds(db):
    start = datetime(2026, 1, 8, 9, tzinfo=UTC)
    entry = tracking.add_manual_entry(db, "acme", start, start + timedelta(hours=1))

    with pytest.raises(InvalidEntryError):
        tracking.edit_entry(db, entry.id, start_time=start + timedelta(hours=3))

    assert db.get_entry(entry.id).start_time == start


def test_edit_and_delete_missing_entry(db):
    with pytest.raises(EntryNotFoundError):
        tracking.edit_entry(db, 7, description="x")
    with pytest.raises(EntryNotFoundError):
        tracking.delete_entry(db, 7)


def test_delete_returns_removed_entry(db):
    entry = tracking.start_entry(db, "acme")

    removed = tracking.delete_entry(db, entry.id)

    assert removed.id == entry.id
    assert db.get_entry(entry.id) is None
