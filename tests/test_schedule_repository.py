"""Tests for the SQLite schedule repository."""

from __future__ import annotations

import inspect
import sqlite3
from datetime import date

import pytest

from signage.domain.exceptions import RepositoryError
from signage.domain.schedules import PlaylistSchedule


def test_create_and_fetch(schedule_repo, tenant_id, playlist_id):
    created = schedule_repo.create(
        PlaylistSchedule(
            tenant_id=tenant_id,
            playlist_id=playlist_id,
            name="Weekend",
            start_date="2025-06-07",
            end_date="2025-08-31",
            start_time="22:00",
            end_time="02:00",
            days_of_week=[6, 0],
            priority=4,
        )
    )
    assert created.schedule_id is not None

    fetched = schedule_repo.get_by_id(created.schedule_id)
    assert fetched.start_date == date(2025, 6, 7)
    assert fetched.end_date == date(2025, 8, 31)
    assert fetched.start_time == "22:00"
    assert fetched.end_time == "02:00"
    assert fetched.days_of_week == [0, 6]
    assert fetched.priority == 4
    assert fetched.is_active is True
    assert fetched.created_at is not None


def test_open_fields_are_stored_as_null(schedule_repo, db_handler, tenant_id, playlist_id):
    created = schedule_repo.create(PlaylistSchedule(tenant_id=tenant_id, playlist_id=playlist_id, name="Always"))

    with db_handler.connection() as conn:
        row = conn.execute(
            "SELECT start_date, end_date, start_time, end_time, days_of_week FROM PlaylistSchedules "
            "WHERE schedule_id = ?",
            (created.schedule_id,),
        ).fetchone()
    assert tuple(row) == (None, None, None, None, None)

    fetched = schedule_repo.get_by_id(created.schedule_id)
    assert fetched.days_of_week is None
    assert fetched.formatted_time_range() == "All day"


def test_find_active_schedules(seed, schedule_repo, tenant_id, playlist_id):
    first = seed.create_schedule(tenant_id, playlist_id, "First")
    seed.create_schedule(tenant_id, playlist_id, "Disabled", is_active=False)
    third = seed.create_schedule(tenant_id, playlist_id, "Third")
    other_tenant = seed.create_tenant("Other")
    seed.create_schedule(other_tenant, seed.create_playlist(other_tenant), "Foreign")

    assert [s.name for s in schedule_repo.find_active_schedules(tenant_id)] == ["First", "Third"]
    assert schedule_repo.find_active_schedules(tenant_id, first.schedule_id) == [
        schedule_repo.get_by_id(third.schedule_id)
    ]


def test_update_and_set_active(seed, schedule_repo, tenant_id, playlist_id):
    schedule = seed.create_schedule(tenant_id, playlist_id, "Before", start_time="08:00", end_time="09:00")
    schedule.name = "After"
    schedule.end_time = "10:00"

    updated = schedule_repo.update(schedule)
    assert updated.name == "After"
    assert updated.end_time == "10:00"

    assert schedule_repo.set_active(schedule.schedule_id, False) is True
    assert schedule_repo.get_by_id(schedule.schedule_id).is_active is False


def test_missing_rows(schedule_repo, tenant_id, playlist_id):
    ghost = PlaylistSchedule(schedule_id=999, tenant_id=tenant_id, playlist_id=playlist_id, name="Ghost")
    assert schedule_repo.get_by_id(999) is None
    assert schedule_repo.update(ghost) is None
    assert schedule_repo.delete(999) is False
    assert schedule_repo.set_active(999, True) is False


def test_delete(seed, schedule_repo, tenant_id, playlist_id):
    schedule = seed.create_schedule(tenant_id, playlist_id)
    assert schedule_repo.delete(schedule.schedule_id) is True
    assert schedule_repo.get_by_id(schedule.schedule_id) is None


def test_playlist_tenant(seed, schedule_repo, tenant_id, playlist_id):
    assert schedule_repo.get_playlist_tenant_id(playlist_id) == tenant_id
    assert schedule_repo.get_playlist_tenant_id(12345) is None


def test_unknown_playlist_violates_foreign_key(schedule_repo, tenant_id):
    with pytest.raises(RepositoryError) as exc_info:
        schedule_repo.create(PlaylistSchedule(tenant_id=tenant_id, playlist_id=12345, name="Orphan"))
    assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)


def test_read_failure_is_raised(db_handler, schedule_repo, tenant_id):
    with db_handler.connection() as conn:
        conn.execute("DROP TABLE PlaylistSchedules")

    with pytest.raises(RepositoryError):
        schedule_repo.find_active_schedules(tenant_id)


def test_file_database_uses_wal(tmp_path):
    from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

    handler = SQLiteDatabaseHandler(str(tmp_path / "nested" / "signage.db"))
    handler.create_tables()
    try:
        mode = handler.get_db().execute("PRAGMA journal_mode").fetchone()[0]
        assert mode.lower() == "wal"
        tenant = handler.insert_tenant("File tenant")
        assert handler.get_playlist_tenant_id(handler.insert_playlist(tenant, "P")) == tenant
    finally:
        handler.close()


def test_sqlite_repository_implements_protocol():
    from infrastructure.database.repositories.schedules import ScheduleRepository
    from signage.domain.schedules.repository import ScheduleRepository as ScheduleRepositoryProtocol

    required = {
        name
        for name, value in vars(ScheduleRepositoryProtocol).items()
        if callable(value) and not name.startswith("_")
    }
    assert "find_active_schedules" in required
    for name in required:
        protocol_params = inspect.signature(getattr(ScheduleRepositoryProtocol, name)).parameters
        concrete_params = inspect.signature(getattr(ScheduleRepository, name)).parameters
        assert list(concrete_params) == list(protocol_params), name
